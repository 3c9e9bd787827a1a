from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Appwrite (accounts + document store)
    appwrite_endpoint: str = "https://cloud.appwrite.io/v1"
    appwrite_project: str = ""
    appwrite_api_key: Optional[str] = None  # server key; without it reads use the caller's JWT only

    # Appwrite database layout
    appwrite_database_id: str = "rube-chat"
    appwrite_conversations_collection_id: str = "conversations"
    appwrite_messages_collection_id: str = "messages"
    conversation_list_limit: int = 100
    message_list_limit: int = 1000

    # Composio (connected accounts)
    composio_api_key: Optional[str] = None
    composio_base_url: str = "https://backend.composio.dev/api/v3"

    # Where Composio redirects after a user finishes linking an account
    callback_url: Optional[str] = None

    # Outbound HTTP
    http_timeout_seconds: float = 30.0

    # General
    log_level: str = "INFO"


settings = Settings()
