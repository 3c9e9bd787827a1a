"""API request/response schemas."""

from typing import Any, Dict, List, Optional, Type, TypeVar
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as SchemaError

from backend.core.errors import ValidationError

RequestModel = TypeVar("RequestModel", bound=BaseModel)


def parse_body(model: Type[RequestModel], raw: Any, message: str) -> RequestModel:
    """Validate a raw JSON body, reporting any shape problem as a 400 with *message*."""
    if not isinstance(raw, dict):
        raise ValidationError(message)
    try:
        return model.model_validate(raw)
    except SchemaError as exc:
        raise ValidationError(message) from exc


class AuthLinkRequest(BaseModel):
    """Body of POST /authLinks. Fields are optional so absence maps to a 400."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    auth_config_id: Optional[str] = Field(default=None, alias="authConfigId")


class ToolkitRequest(BaseModel):
    """Body of POST /authConfig/byToolkit and POST /toolkit."""

    toolkit: Optional[str] = None


class DisconnectRequest(BaseModel):
    """Body of DELETE /connectedAccounts/disconnect."""

    model_config = ConfigDict(populate_by_name=True)

    account_id: Optional[str] = Field(default=None, alias="accountId")


class ConnectedAccountsRequest(BaseModel):
    """Body of POST /connectedAccounts."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")


# Conversations

class ConversationResponse(BaseModel):
    id: str
    title: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    user_id: Optional[str] = None


class MessageResponse(BaseModel):
    id: str
    conversation_id: Optional[str] = None
    user_id: Optional[str] = None
    content: str
    role: str
    created_at: Optional[str] = None


class ConversationListResponse(BaseModel):
    conversations: List[ConversationResponse]


class MessageListResponse(BaseModel):
    messages: List[MessageResponse]


class SuccessResponse(BaseModel):
    success: bool = True


class DisconnectResponse(SuccessResponse):
    message: str
    result: Optional[Dict[str, Any]] = None


class ConnectionStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    connected_accounts: List[Dict[str, Any]] = Field(alias="connectedAccounts")


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response."""

    error: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: datetime
