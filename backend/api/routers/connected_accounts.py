"""Connected account listing, status and removal."""

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends

from backend.api.dependencies import get_composio_client
from backend.api.schemas import (
    ConnectedAccountsRequest,
    ConnectionStatusResponse,
    DisconnectRequest,
    DisconnectResponse,
    ErrorResponse,
    parse_body,
)
from backend.auth.dependencies import get_current_user
from backend.auth.token_auth import AuthenticatedUser
from backend.core.errors import InternalError, ValidationError
from backend.services.composio_client import ComposioClient
from rube_logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/connectedAccounts", tags=["connected-accounts"])

apps_router = APIRouter(prefix="/apps", tags=["connected-accounts"])


@router.post(
    "",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def list_connected_accounts(
    raw_body: Any = Body(None),
    composio: ComposioClient = Depends(get_composio_client),
):
    """Connected accounts for one Composio user id, as returned by Composio."""
    message = "userId is required"
    body = parse_body(ConnectedAccountsRequest, raw_body, message)
    if not body.user_id:
        raise ValidationError(message)

    try:
        return await composio.list_connected_accounts([body.user_id])
    except Exception as exc:
        logger.error("connected_accounts_fetch_failed", user_id=body.user_id, error=exc)
        raise InternalError("Failed to fetch connected accounts") from exc


@router.delete(
    "/disconnect",
    response_model=DisconnectResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def disconnect_account(
    raw_body: Any = Body(None),
    current_user: AuthenticatedUser = Depends(get_current_user),
    composio: ComposioClient = Depends(get_composio_client),
):
    """Revoke one of the caller's connected accounts."""
    message = "accountId is required"
    body = parse_body(DisconnectRequest, raw_body, message)
    if not body.account_id:
        raise ValidationError(message)

    logger.info(
        "disconnecting_account", account_id=body.account_id, user_id=current_user.id
    )
    try:
        result = await composio.delete_connected_account(body.account_id)
        return DisconnectResponse(
            success=True,
            message="Account disconnected successfully",
            result=result,
        )
    except Exception as exc:
        logger.error("account_disconnect_failed", account_id=body.account_id, error=exc)
        raise InternalError("Failed to disconnect account") from exc


@apps_router.get(
    "/connection",
    response_model=ConnectionStatusResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def connection_status(
    current_user: AuthenticatedUser = Depends(get_current_user),
    composio: ComposioClient = Depends(get_composio_client),
):
    """The caller's connected accounts with full details.

    Accounts are keyed by the user's email in Composio. When an account's
    detail lookup fails, its list entry is returned instead.
    """
    composio_user_id = current_user.email or current_user.id
    try:
        listing = await composio.list_connected_accounts([composio_user_id])
        accounts: List[Dict[str, Any]] = []
        for item in listing.get("items", []):
            try:
                accounts.append(await composio.get_connected_account(item["id"]))
            except Exception as exc:
                logger.warning(
                    "connected_account_detail_failed",
                    account_id=item.get("id"),
                    error=exc,
                )
                accounts.append(item)
        return ConnectionStatusResponse(connected_accounts=accounts)
    except Exception as exc:
        logger.error(
            "connection_status_failed", user_id=current_user.id, error=exc
        )
        raise InternalError("Failed to fetch connection status") from exc
