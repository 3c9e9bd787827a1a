"""FastAPI dependencies for resolving the current authenticated user."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials

from backend.auth.token_auth import AppwriteTokenVerifier, AuthenticatedUser, bearer_scheme
from backend.core.errors import AuthError
from rube_logging import get_logger

logger = get_logger(__name__)


def get_token_verifier() -> AppwriteTokenVerifier:
    return AppwriteTokenVerifier()


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: AppwriteTokenVerifier = Depends(get_token_verifier),
) -> AuthenticatedUser:
    """Return the caller's identity. Raises 401 when the token is missing or rejected."""
    try:
        auth = await verifier.authenticate(request, credentials=credentials)
    except Exception as exc:
        logger.error("authentication_errored", error=exc)
        raise AuthError("Unauthorized") from exc
    if auth.user is None:
        raise AuthError("Unauthorized", details={"reason": auth.error})
    return auth.user
