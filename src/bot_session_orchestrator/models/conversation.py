"""Conversation session models for Bot Session Orchestrator.

This module defines Pydantic models for web chat users, bot credentials,
and the conversation session records kept in the session store.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bot_session_orchestrator.constants import DEFAULT_USER_NAME


class ChatMode(str, Enum):
    """How a chat session is used.

    ``conversation`` is an ephemeral test conversation against the bot,
    ``livechat`` is a persisted live chat session.
    """

    CONVERSATION = "conversation"
    LIVECHAT = "livechat"


class User(BaseModel):
    """Web chat participant.

    Created once per identity generator and shared by reference across all
    sessions it takes part in.

    Attributes:
        id: Unique user identifier.
        name: Display name.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="User ID")
    name: str = Field(DEFAULT_USER_NAME, description="Display name")


class ProcessCredentials(BaseModel):
    """Credentials of the bot process, passed through to the backend untouched.

    Attributes:
        app_id: Microsoft App ID of the bot.
        app_password: Microsoft App Password of the bot.
    """

    model_config = ConfigDict(frozen=True)

    app_id: str = Field("", description="Microsoft App ID")
    app_password: str = Field("", repr=False, description="Microsoft App Password")


class ConversationSession(BaseModel):
    """A chat session bound to a running bot endpoint.

    Records are immutable. A restart produces a new record, possibly reusing
    the conversation ID, bound to a new channel handle. The channel handle is
    never serialized; records loaded from durable storage carry ``None``.

    Attributes:
        conversation_id: ``<token>|<chat mode>`` or the ID the backend issued.
        chat_mode: Mode the session was opened in.
        user: Participant the session belongs to.
        endpoint_id: Backend endpoint the session is bound to.
        process_endpoint: Messaging endpoint of the bot process.
        channel_handle: Live transport handle owned by the session manager.
        created_at: Timestamp when the record was created.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    conversation_id: str = Field(..., min_length=1, description="Conversation ID")
    chat_mode: ChatMode = Field(ChatMode.CONVERSATION, description="Chat mode")
    user: User = Field(..., description="Session participant")
    endpoint_id: str = Field(..., description="Bound endpoint ID")
    process_endpoint: str = Field("", description="Bot messaging endpoint")
    channel_handle: Any = Field(None, exclude=True, description="Live channel handle")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=UTC), description="Creation timestamp"
    )

    @property
    def is_connected(self) -> bool:
        """Whether the record holds a live channel handle."""
        return self.channel_handle is not None
