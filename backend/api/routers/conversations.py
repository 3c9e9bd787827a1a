"""Conversation list / delete and message history endpoints."""

from fastapi import APIRouter, Depends

from backend.api.dependencies import get_conversation_store
from backend.api.schemas import (
    ConversationListResponse,
    ErrorResponse,
    MessageListResponse,
    SuccessResponse,
)
from backend.auth.dependencies import get_current_user
from backend.auth.token_auth import AuthenticatedUser
from backend.core.errors import InternalError
from backend.memory.conversation_store import ConversationStore
from rube_logging import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/conversations",
    tags=["conversations"],
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)


@router.get("", response_model=ConversationListResponse)
async def list_conversations(
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
):
    """List the authenticated user's conversations, most recently updated first."""
    try:
        conversations = await store.list_conversations(current_user.id)
        return ConversationListResponse(conversations=conversations)
    except Exception as exc:
        logger.error("conversations_fetch_failed", user_id=current_user.id, error=exc)
        raise InternalError("Failed to fetch conversations") from exc


@router.delete("/{conversation_id}", response_model=SuccessResponse)
async def delete_conversation(
    conversation_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
):
    """Delete a conversation and all its messages.

    Ownership is checked by the store; a refusal is reported as a failed delete.
    """
    try:
        deleted = await store.delete_conversation(conversation_id, current_user.id)
    except Exception as exc:
        logger.error(
            "conversation_delete_errored",
            conversation_id=conversation_id,
            user_id=current_user.id,
            error=exc,
        )
        raise InternalError("Failed to delete conversation") from exc

    if not deleted:
        logger.warning(
            "conversation_not_deleted",
            conversation_id=conversation_id,
            user_id=current_user.id,
        )
        raise InternalError("Failed to delete conversation")
    return SuccessResponse(success=True)


@router.get("/{conversation_id}/messages", response_model=MessageListResponse)
async def list_messages(
    conversation_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
):
    """Messages of one conversation, oldest first.

    Visibility is decided by the store's per-document permissions for the caller.
    """
    try:
        messages = await store.get_conversation_messages(conversation_id)
        return MessageListResponse(messages=messages)
    except Exception as exc:
        logger.error(
            "messages_fetch_failed",
            conversation_id=conversation_id,
            user_id=current_user.id,
            error=exc,
        )
        raise InternalError("Failed to fetch messages") from exc
