"""Connected-account auth link creation."""

from typing import Any

from fastapi import APIRouter, Body, Depends

from backend.api.dependencies import get_composio_client
from backend.api.schemas import AuthLinkRequest, ErrorResponse, parse_body
from backend.core.config import settings
from backend.core.errors import InternalError, ValidationError
from backend.services.composio_client import ComposioClient
from rube_logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["auth-links"])


@router.post(
    "/authLinks",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_auth_link(
    raw_body: Any = Body(None),
    composio: ComposioClient = Depends(get_composio_client),
):
    """Create a link the user visits to authorize a third-party account.

    The connection request from Composio is returned as-is; clients read
    ``redirectUrl`` from it.
    """
    message = "userId and authConfigId are required"
    body = parse_body(AuthLinkRequest, raw_body, message)
    if not body.user_id or not body.auth_config_id:
        raise ValidationError(message)

    try:
        return await composio.create_connection_link(
            body.user_id,
            body.auth_config_id,
            callback_url=settings.callback_url,
        )
    except Exception as exc:
        logger.error(
            "auth_link_failed",
            user_id=body.user_id,
            auth_config_id=body.auth_config_id,
            error=exc,
        )
        raise InternalError("Failed to create auth link") from exc
