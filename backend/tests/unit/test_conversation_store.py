"""
Unit tests for the Appwrite-backed ConversationStore.

An in-memory fake of the Appwrite Databases REST API sits behind
httpx.MockTransport.
"""

import json

import httpx
import pytest

from backend.core.config import settings
from backend.core.errors import UpstreamError
from backend.memory.conversation_store import ConversationStore


class FakeAppwrite:
    """Just enough of the documents API: list with equal/limit, get, delete."""

    def __init__(self):
        self.collections = {
            settings.appwrite_conversations_collection_id: {},
            settings.appwrite_messages_collection_id: {},
        }
        self.requests = []
        self.fail_deletes = set()

    def add(self, collection, doc):
        self.collections[collection][doc["$id"]] = doc

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.split("/collections/")[1].split("/")
        collection = self.collections[parts[0]]

        if len(parts) == 2:
            queries = [json.loads(q) for q in request.url.params.get_list("queries[]")]
            docs = list(collection.values())
            for q in queries:
                if q["method"] == "equal":
                    docs = [d for d in docs if d.get(q["attribute"]) in q["values"]]
            for q in queries:
                if q["method"] == "limit":
                    docs = docs[: q["values"][0]]
            return httpx.Response(200, json={"total": len(docs), "documents": docs})

        doc_id = parts[2]
        if doc_id not in collection:
            return httpx.Response(404, json={"message": "Document not found"})
        if request.method == "DELETE":
            if doc_id in self.fail_deletes:
                return httpx.Response(500, json={"message": "boom"})
            del collection[doc_id]
            return httpx.Response(204)
        return httpx.Response(200, json=collection[doc_id])


CONVERSATIONS = settings.appwrite_conversations_collection_id
MESSAGES = settings.appwrite_messages_collection_id


def conversation_doc(conv_id, user_id, title="Chat"):
    return {
        "$id": conv_id,
        "title": title,
        "user_id": user_id,
        "$createdAt": "2026-10-01T10:00:00.000+00:00",
        "$updatedAt": "2026-10-02T10:00:00.000+00:00",
    }


def message_doc(msg_id, conv_id, role="user"):
    return {
        "$id": msg_id,
        "conversation_id": conv_id,
        "user_id": "u1",
        "content": f"content of {msg_id}",
        "role": role,
        "$createdAt": "2026-10-01T10:00:00.000+00:00",
    }


@pytest.fixture
def appwrite():
    return FakeAppwrite()


@pytest.fixture
def store(appwrite, mock_http):
    return ConversationStore(jwt="caller-jwt", client=mock_http(appwrite))


class TestListConversations:

    @pytest.mark.asyncio
    async def test_maps_documents_for_user(self, store, appwrite):
        appwrite.add(CONVERSATIONS, conversation_doc("c1", "u1", title="Flights"))
        appwrite.add(CONVERSATIONS, conversation_doc("c2", "u2"))

        result = await store.list_conversations("u1")

        assert result == [
            {
                "id": "c1",
                "title": "Flights",
                "created_at": "2026-10-01T10:00:00.000+00:00",
                "updated_at": "2026-10-02T10:00:00.000+00:00",
                "user_id": "u1",
            }
        ]

    @pytest.mark.asyncio
    async def test_sends_queries_and_caller_jwt(self, store, appwrite):
        await store.list_conversations("u1")

        request = appwrite.requests[0]
        queries = [json.loads(q) for q in request.url.params.get_list("queries[]")]
        assert {"method": "equal", "attribute": "user_id", "values": ["u1"]} in queries
        assert {"method": "orderDesc", "attribute": "$updatedAt"} in queries
        assert {"method": "limit", "values": [settings.conversation_list_limit]} in queries
        assert request.headers["X-Appwrite-JWT"] == "caller-jwt"
        assert "X-Appwrite-Key" not in request.headers

    @pytest.mark.asyncio
    async def test_empty_title_becomes_none(self, store, appwrite):
        appwrite.add(CONVERSATIONS, conversation_doc("c1", "u1", title=""))

        result = await store.list_conversations("u1")

        assert result[0]["title"] is None

    @pytest.mark.asyncio
    async def test_blank_user_returns_empty_without_request(self, store, appwrite):
        assert await store.list_conversations("") == []
        assert appwrite.requests == []

    @pytest.mark.asyncio
    async def test_upstream_error_propagates(self, mock_http):
        store = ConversationStore(client=mock_http(lambda r: httpx.Response(503)))

        with pytest.raises(UpstreamError) as exc_info:
            await store.list_conversations("u1")

        assert exc_info.value.status_code == 503


class TestGetConversationMessages:

    @pytest.mark.asyncio
    async def test_returns_messages_of_conversation(self, store, appwrite):
        appwrite.add(MESSAGES, message_doc("m1", "c1"))
        appwrite.add(MESSAGES, message_doc("m2", "c1", role="assistant"))
        appwrite.add(MESSAGES, message_doc("m3", "other"))

        result = await store.get_conversation_messages("c1")

        assert [m["id"] for m in result] == ["m1", "m2"]
        assert result[1] == {
            "id": "m2",
            "conversation_id": "c1",
            "user_id": "u1",
            "content": "content of m2",
            "role": "assistant",
            "created_at": "2026-10-01T10:00:00.000+00:00",
        }

    @pytest.mark.asyncio
    async def test_orders_oldest_first(self, store, appwrite):
        await store.get_conversation_messages("c1")

        queries = appwrite.requests[0].url.params.get_list("queries[]")
        assert json.dumps({"method": "orderAsc", "attribute": "$createdAt"}) in queries


class TestDeleteConversation:

    @pytest.mark.asyncio
    async def test_deletes_messages_then_conversation(self, store, appwrite):
        appwrite.add(CONVERSATIONS, conversation_doc("c1", "u1"))
        appwrite.add(MESSAGES, message_doc("m1", "c1"))
        appwrite.add(MESSAGES, message_doc("m2", "c1"))
        appwrite.add(MESSAGES, message_doc("m3", "c2"))

        assert await store.delete_conversation("c1", "u1") is True

        assert appwrite.collections[CONVERSATIONS] == {}
        assert list(appwrite.collections[MESSAGES]) == ["m3"]
        deletes = [r.url.path for r in appwrite.requests if r.method == "DELETE"]
        assert deletes[-1].endswith("/documents/c1")

    @pytest.mark.asyncio
    async def test_refuses_other_users_conversation(self, store, appwrite):
        appwrite.add(CONVERSATIONS, conversation_doc("c1", "owner"))
        appwrite.add(MESSAGES, message_doc("m1", "c1"))

        assert await store.delete_conversation("c1", "intruder") is False

        assert "c1" in appwrite.collections[CONVERSATIONS]
        assert "m1" in appwrite.collections[MESSAGES]

    @pytest.mark.asyncio
    async def test_missing_conversation_returns_false(self, store):
        assert await store.delete_conversation("nope", "u1") is False

    @pytest.mark.asyncio
    async def test_keeps_conversation_when_a_message_delete_fails(self, store, appwrite):
        appwrite.add(CONVERSATIONS, conversation_doc("c1", "u1"))
        appwrite.add(MESSAGES, message_doc("m1", "c1"))
        appwrite.add(MESSAGES, message_doc("m2", "c1"))
        appwrite.fail_deletes.add("m1")

        assert await store.delete_conversation("c1", "u1") is False

        assert "c1" in appwrite.collections[CONVERSATIONS]

    @pytest.mark.asyncio
    async def test_pages_through_messages(self, store, appwrite, monkeypatch):
        monkeypatch.setattr(settings, "message_list_limit", 2)
        appwrite.add(CONVERSATIONS, conversation_doc("c1", "u1"))
        for i in range(5):
            appwrite.add(MESSAGES, message_doc(f"m{i}", "c1"))

        assert await store.delete_conversation("c1", "u1") is True

        assert appwrite.collections[MESSAGES] == {}

    @pytest.mark.asyncio
    async def test_blank_arguments_return_false(self, store, appwrite):
        assert await store.delete_conversation("", "u1") is False
        assert await store.delete_conversation("c1", "") is False
        assert appwrite.requests == []


class TestServerKey:

    def test_uses_api_key_without_jwt(self, monkeypatch):
        monkeypatch.setattr(settings, "appwrite_api_key", "server-key")

        headers = ConversationStore()._headers()

        assert headers["X-Appwrite-Key"] == "server-key"
        assert "X-Appwrite-JWT" not in headers
