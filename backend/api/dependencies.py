"""Collaborator providers, overridable through ``app.dependency_overrides``."""

from fastapi import Request

from backend.auth.token_auth import extract_bearer_token
from backend.memory.conversation_store import ConversationStore
from backend.services.composio_client import ComposioClient


async def get_conversation_store(request: Request) -> ConversationStore:
    """Store acting as the caller, so Appwrite's per-document permissions apply."""
    token, _ = await extract_bearer_token(request)
    return ConversationStore(jwt=token)


def get_composio_client() -> ComposioClient:
    return ComposioClient()
