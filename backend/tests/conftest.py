import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from backend.api.dependencies import get_composio_client, get_conversation_store
from backend.api.main import app
from backend.auth.dependencies import get_token_verifier
from backend.auth.token_auth import AuthenticatedUser, AuthResult
from backend.memory.conversation_store import ConversationStore
from backend.services.composio_client import ComposioClient


class FakeTokenVerifier:
    """Stands in for Appwrite: returns ``user`` for every request, counting calls."""

    def __init__(self, user=None):
        self.user = user
        self.calls = 0

    async def authenticate(self, request, credentials=None):
        self.calls += 1
        if self.user is None:
            return AuthResult(user=None, error="No Authorization header")
        return AuthResult(user=self.user, source="token")


@pytest.fixture
def user():
    return AuthenticatedUser(id="u1", email="u1@example.com", name="User One")


@pytest.fixture
def verifier(user):
    return FakeTokenVerifier(user)


@pytest.fixture
def store():
    """ConversationStore double; every method is an AsyncMock."""
    return AsyncMock(spec=ConversationStore)


@pytest.fixture
def composio():
    """ComposioClient double; every method is an AsyncMock."""
    return AsyncMock(spec=ComposioClient)


@pytest.fixture
def client(verifier, store, composio):
    """API client with every external collaborator replaced."""
    app.dependency_overrides[get_token_verifier] = lambda: verifier
    app.dependency_overrides[get_conversation_store] = lambda: store
    app.dependency_overrides[get_composio_client] = lambda: composio
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def mock_http():
    """Factory for ``httpx.AsyncClient``s served by a handler; all closed on teardown."""
    clients = []

    def make(handler) -> httpx.AsyncClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(http)
        return http

    yield make
    for http in clients:
        await http.aclose()
