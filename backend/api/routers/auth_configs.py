"""Auth config and toolkit lookup endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Depends

from backend.api.dependencies import get_composio_client
from backend.api.schemas import ErrorResponse, ToolkitRequest, parse_body
from backend.core.errors import InternalError, ValidationError
from backend.services.composio_client import ComposioClient
from rube_logging import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/authConfig",
    tags=["auth-configs"],
    responses={500: {"model": ErrorResponse}},
)

toolkit_router = APIRouter(tags=["toolkits"], responses={500: {"model": ErrorResponse}})


@router.post("/all")
async def list_all_auth_configs(
    composio: ComposioClient = Depends(get_composio_client),
):
    """Every auth config on the Composio project."""
    try:
        return await composio.list_auth_configs()
    except Exception as exc:
        logger.error("auth_configs_fetch_failed", error=exc)
        raise InternalError("Failed to fetch auth configs") from exc


@router.post("/byToolkit", responses={400: {"model": ErrorResponse}})
async def list_auth_configs_by_toolkit(
    raw_body: Any = Body(None),
    composio: ComposioClient = Depends(get_composio_client),
):
    """Auth configs for one toolkit slug (e.g. ``gmail``)."""
    message = "Toolkit parameter is required"
    body = parse_body(ToolkitRequest, raw_body, message)
    if not body.toolkit:
        raise ValidationError(message)

    try:
        return await composio.list_auth_configs(toolkit=body.toolkit)
    except Exception as exc:
        logger.error("auth_config_fetch_failed", toolkit=body.toolkit, error=exc)
        raise InternalError("Failed to fetch auth config") from exc


@toolkit_router.post("/toolkit", responses={400: {"model": ErrorResponse}})
async def get_toolkit_details(
    raw_body: Any = Body(None),
    composio: ComposioClient = Depends(get_composio_client),
):
    """Toolkit metadata (name, logo, auth schemes) for one slug."""
    message = "Toolkit slug is required"
    body = parse_body(ToolkitRequest, raw_body, message)
    if not body.toolkit:
        raise ValidationError(message)

    try:
        return await composio.get_toolkit(body.toolkit)
    except Exception as exc:
        logger.error("toolkit_fetch_failed", toolkit=body.toolkit, error=exc)
        raise InternalError("Failed to fetch toolkit details") from exc
