"""Composio connected-accounts client.

Thin wrapper over the Composio v3 REST API for the calls the backend
makes on behalf of mobile clients.
"""

from typing import Any, Dict, List, Optional

import httpx

from backend.core.config import settings
from backend.core.errors import ConfigurationError, UpstreamError
from backend.core.http import get_client
from rube_logging import get_logger

logger = get_logger(__name__)


def connection_request_from_link(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Map the link endpoint's snake_case payload to the client-facing shape.

    The mobile client reads ``redirectUrl``; the remaining fields are passed
    through for callers that poll the pending connection.
    """
    return {
        "id": payload.get("connected_account_id"),
        "redirectUrl": payload.get("redirect_url"),
        "linkToken": payload.get("link_token"),
        "expiresAt": payload.get("expires_at"),
    }


class ComposioClient:
    """Connected-accounts collaborator backed by Composio."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key or settings.composio_api_key
        self.base_url = settings.composio_base_url.rstrip("/")
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_client()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        if not self.api_key:
            raise ConfigurationError("COMPOSIO_API_KEY environment variable is not set")

        try:
            with logger.timed("composio_request", http_method=method, path=path):
                response = await self.client.request(
                    method,
                    f"{self.base_url}{path}",
                    headers={"x-api-key": self.api_key},
                    **kwargs,
                )
        except httpx.HTTPError as exc:
            raise UpstreamError("composio", str(exc)) from exc

        if response.is_error:
            raise UpstreamError(
                "composio",
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )
        return response.json() if response.content else {}

    async def create_connection_link(
        self,
        user_id: str,
        auth_config_id: str,
        callback_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Start linking *auth_config_id* for *user_id*; returns a connection request."""
        body: Dict[str, Any] = {"user_id": user_id, "auth_config_id": auth_config_id}
        if callback_url:
            body["callback_url"] = callback_url

        payload = await self._request("POST", "/connected_accounts/link", json=body)
        logger.info(
            "connection_link_created",
            user_id=user_id,
            auth_config_id=auth_config_id,
        )
        return connection_request_from_link(payload)

    async def list_auth_configs(self, toolkit: Optional[str] = None) -> Dict[str, Any]:
        params = {"toolkit_slug": toolkit} if toolkit else None
        return await self._request("GET", "/auth_configs", params=params)

    async def delete_connected_account(self, account_id: str) -> Dict[str, Any]:
        result = await self._request("DELETE", f"/connected_accounts/{account_id}")
        logger.info("connected_account_deleted", account_id=account_id)
        return result

    async def list_connected_accounts(self, user_ids: List[str]) -> Dict[str, Any]:
        """Connected accounts owned by any of *user_ids*, as ``{"items": [...]}``."""
        params = [("user_ids", user_id) for user_id in user_ids]
        return await self._request("GET", "/connected_accounts", params=params)

    async def get_connected_account(self, account_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/connected_accounts/{account_id}")

    async def get_toolkit(self, slug: str) -> Dict[str, Any]:
        return await self._request("GET", f"/toolkits/{slug}")
