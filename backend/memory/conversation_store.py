"""Appwrite-backed conversation and message store."""

import json
from typing import Any, Optional

import httpx

from backend.core.config import settings
from backend.core.errors import UpstreamError
from backend.core.http import get_client
from rube_logging import get_logger

logger = get_logger(__name__)


def equal(attribute: str, value: Any) -> dict:
    return {"method": "equal", "attribute": attribute, "values": [value]}


def order_asc(attribute: str) -> dict:
    return {"method": "orderAsc", "attribute": attribute}


def order_desc(attribute: str) -> dict:
    return {"method": "orderDesc", "attribute": attribute}


def limit(count: int) -> dict:
    return {"method": "limit", "values": [count]}


def conversation_from_document(doc: dict) -> dict:
    return {
        "id": doc["$id"],
        "title": doc.get("title") or None,
        "created_at": doc.get("$createdAt"),
        "updated_at": doc.get("$updatedAt"),
        "user_id": doc.get("user_id"),
    }


def message_from_document(doc: dict) -> dict:
    return {
        "id": doc["$id"],
        "conversation_id": doc.get("conversation_id"),
        "user_id": doc.get("user_id"),
        "content": doc.get("content", ""),
        "role": doc.get("role", "user"),
        "created_at": doc.get("$createdAt"),
    }


class ConversationStore:
    """Lists and deletes conversations and messages held in Appwrite Databases.

    A store built with the caller's ``jwt`` acts as that user, so Appwrite's
    document-level permissions decide what is visible. Without a JWT the
    server API key is used.
    """

    def __init__(
        self,
        jwt: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._jwt = jwt
        self._client = client
        self._base_url = (
            f"{settings.appwrite_endpoint.rstrip('/')}"
            f"/databases/{settings.appwrite_database_id}/collections"
        )

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_client()

    def _headers(self) -> dict:
        headers = {"X-Appwrite-Project": settings.appwrite_project}
        if self._jwt:
            headers["X-Appwrite-JWT"] = self._jwt
        elif settings.appwrite_api_key:
            headers["X-Appwrite-Key"] = settings.appwrite_api_key
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(
                method, f"{self._base_url}{path}", headers=self._headers(), **kwargs
            )
        except httpx.HTTPError as exc:
            raise UpstreamError("appwrite", str(exc)) from exc
        if response.is_error:
            raise UpstreamError(
                "appwrite",
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )
        return response

    # ── Document primitives ──────────────────────────────────────────────────

    async def _list_documents(self, collection_id: str, queries: list[dict]) -> list[dict]:
        params = [("queries[]", json.dumps(q)) for q in queries]
        with logger.timed("appwrite_list_documents", collection=collection_id):
            response = await self._request(
                "GET", f"/{collection_id}/documents", params=params
            )
        return response.json().get("documents", [])

    async def _get_document(self, collection_id: str, document_id: str) -> Optional[dict]:
        try:
            response = await self._request(
                "GET", f"/{collection_id}/documents/{document_id}"
            )
        except UpstreamError as exc:
            if exc.status_code == 404:
                return None
            raise
        return response.json()

    async def _delete_document(self, collection_id: str, document_id: str) -> None:
        await self._request("DELETE", f"/{collection_id}/documents/{document_id}")

    # ── Conversations ────────────────────────────────────────────────────────

    async def list_conversations(self, user_id: str) -> list[dict]:
        """Conversations owned by *user_id*, most recently updated first."""
        if not user_id:
            logger.error("list_conversations_missing_user_id")
            return []

        docs = await self._list_documents(
            settings.appwrite_conversations_collection_id,
            [
                equal("user_id", user_id),
                order_desc("$updatedAt"),
                limit(settings.conversation_list_limit),
            ],
        )
        return [conversation_from_document(d) for d in docs]

    async def get_conversation(self, conversation_id: str, user_id: str) -> Optional[dict]:
        """Return the conversation if it exists and belongs to *user_id*."""
        doc = await self._get_document(
            settings.appwrite_conversations_collection_id, conversation_id
        )
        if doc is None:
            return None
        if doc.get("user_id") != user_id:
            logger.warning(
                "conversation_owner_mismatch",
                conversation_id=conversation_id,
                user_id=user_id,
            )
            return None
        return conversation_from_document(doc)

    async def delete_conversation(self, conversation_id: str, user_id: str) -> bool:
        """Delete a conversation and all its messages.

        Messages go first. If any message cannot be deleted the conversation
        is left in place so the caller still sees it and can retry.
        Returns False when the conversation is missing, owned by someone else,
        or the upstream store fails.
        """
        if not conversation_id or not user_id:
            logger.error("delete_conversation_missing_arguments")
            return False

        try:
            if await self.get_conversation(conversation_id, user_id) is None:
                return False

            messages_collection = settings.appwrite_messages_collection_id
            batch_size = settings.message_list_limit
            while True:
                batch = await self._list_documents(
                    messages_collection,
                    [equal("conversation_id", conversation_id), limit(batch_size)],
                )
                failed = 0
                for doc in batch:
                    try:
                        await self._delete_document(messages_collection, doc["$id"])
                    except UpstreamError as exc:
                        failed += 1
                        logger.error(
                            "message_delete_failed", message_id=doc["$id"], error=exc
                        )
                if failed:
                    return False
                if len(batch) < batch_size:
                    break

            await self._delete_document(
                settings.appwrite_conversations_collection_id, conversation_id
            )
        except UpstreamError as exc:
            logger.error(
                "conversation_delete_failed",
                conversation_id=conversation_id,
                error=exc,
            )
            return False

        logger.info("conversation_deleted", conversation_id=conversation_id)
        return True

    # ── Messages ─────────────────────────────────────────────────────────────

    async def get_conversation_messages(self, conversation_id: str) -> list[dict]:
        """All messages of a conversation, oldest first."""
        if not conversation_id:
            logger.error("get_conversation_messages_missing_conversation_id")
            return []

        docs = await self._list_documents(
            settings.appwrite_messages_collection_id,
            [
                equal("conversation_id", conversation_id),
                order_asc("$createdAt"),
                limit(settings.message_list_limit),
            ],
        )
        return [message_from_document(d) for d in docs]
