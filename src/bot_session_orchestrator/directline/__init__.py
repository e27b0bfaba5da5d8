"""Direct Line host integration.

This module exports the bot-management backend client, the channel
transport and their exceptions.
"""

from bot_session_orchestrator.directline.backend_client import (
    BackendClient,
    BotManagementBackend,
    ConversationBinding,
)
from bot_session_orchestrator.directline.exceptions import (
    DirectLineError,
    ProvisioningError,
    TransportError,
)
from bot_session_orchestrator.directline.transport import (
    ChannelHandle,
    ChannelTransport,
    DirectLineHandle,
    DirectLineTransport,
    ErrorCallback,
)

__all__ = [
    "BackendClient",
    "BotManagementBackend",
    "ChannelHandle",
    "ChannelTransport",
    "ConversationBinding",
    "DirectLineError",
    "DirectLineHandle",
    "DirectLineTransport",
    "ErrorCallback",
    "ProvisioningError",
    "TransportError",
]
