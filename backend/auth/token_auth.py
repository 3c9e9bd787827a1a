"""Bearer-token authentication against Appwrite accounts.

Mobile clients send an Appwrite session JWT as ``Authorization: Bearer <jwt>``.
The token is verified by asking Appwrite for the account it belongs to.
"""

from dataclasses import dataclass
from typing import Literal, Optional

import httpx
from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.core.config import settings
from backend.core.http import get_client
from rube_logging import get_logger

logger = get_logger(__name__)

# auto_error=False: a missing or malformed header means "no user", not an error
bearer_scheme = HTTPBearer(auto_error=False, description="Appwrite session JWT")


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class AuthResult:
    user: Optional[AuthenticatedUser]
    source: Optional[Literal["token"]] = None
    error: Optional[str] = None


async def extract_bearer_token(request: Request) -> tuple[Optional[str], Optional[str]]:
    """Return ``(token, error)``; exactly one of them is set."""
    if not request.headers.get("Authorization"):
        return None, "No Authorization header"
    credentials = await bearer_scheme(request)
    return token_from_credentials(credentials)


def token_from_credentials(
    credentials: Optional[HTTPAuthorizationCredentials],
) -> tuple[Optional[str], Optional[str]]:
    if credentials is None:
        return None, "Invalid Authorization format (expected Bearer token)"
    token = credentials.credentials.strip()
    if not token:
        return None, "Empty token"
    return token, None


class AppwriteTokenVerifier:
    """Resolves the caller's identity from an Appwrite JWT."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_client()

    async def authenticate(
        self,
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = None,
    ) -> AuthResult:
        """Never raises: any failure to resolve the account yields no user."""
        if credentials is None:
            token, error = await extract_bearer_token(request)
        else:
            token, error = token_from_credentials(credentials)
        if token is None:
            return AuthResult(user=None, error=error)

        try:
            response = await self.client.get(
                f"{settings.appwrite_endpoint.rstrip('/')}/account",
                headers={
                    "X-Appwrite-Project": settings.appwrite_project,
                    "X-Appwrite-JWT": token,
                },
            )
            response.raise_for_status()
            account = response.json()
            user = AuthenticatedUser(
                id=account["$id"],
                email=account.get("email"),
                name=account.get("name"),
            )
        except httpx.HTTPStatusError as exc:
            logger.info("token_rejected", status_code=exc.response.status_code)
            return AuthResult(user=None, error="Invalid or expired token")
        except Exception as exc:
            logger.warning("token_verification_failed", error=exc)
            return AuthResult(user=None, error="Invalid or expired token")

        return AuthResult(user=user, source="token")
