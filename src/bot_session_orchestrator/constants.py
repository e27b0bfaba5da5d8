"""Constants used throughout Bot Session Orchestrator.

This module contains application constants that do not depend on runtime
configuration or environment variables. For environment-based configuration,
see the config module.
"""

from typing import Final

# =============================================================================
# Runtime Status Polling
# =============================================================================

RUNTIME_POLLING_INTERVAL: Final[float] = 3.0
"""Interval in seconds between runtime status polls while reloading."""

RUNTIME_FINAL_POLL_DELAY: Final[float] = 3.0
"""Delay in seconds before the single final poll after reaching connected.

One more status sample is taken after the runtime reports connected so that
a stale sample is never the last one observed.
"""

# =============================================================================
# Conversation Identifiers
# =============================================================================

CONVERSATION_ID_SEPARATOR: Final[str] = "|"
"""Separator between the unique token and the chat mode in a conversation ID."""

DEFAULT_USER_NAME: Final[str] = "User"
"""Display name given to the generated web chat user."""

# =============================================================================
# Direct Line Host
# =============================================================================

CHANNEL_SERVICE_TYPE_PUBLIC: Final[str] = "public"
"""Channel service discriminator sent when provisioning a conversation."""

DEFAULT_DIRECTLINE_HOST_URL: Final[str] = "http://localhost:3000"
"""Default Direct Line host (the authoring tool's local server)."""

DEFAULT_BOT_URL: Final[str] = "http://localhost:3978/api/messages"
"""Default messaging endpoint of a locally running bot."""

CONVERSATIONS_PATH: Final[str] = "/conversations"
"""Backend path for provisioning conversations."""

CONVERSATION_UPDATE_PATH: Final[str] = "/conversations/conversationUpdate"
"""Backend path for rebinding a conversation to a new identifier."""

DIRECTLINE_PATH: Final[str] = "/v3/directline/conversations"
"""Direct Line path for opening channels and exchanging activities."""

ERROR_CHANNEL_PATH: Final[str] = "/ws/createErrorChannel"
"""Websocket path for the asynchronous transport error channel."""

CONVERSATION_ID_HEADER: Final[str] = "conversationid"
"""Header carrying the conversation ID on Direct Line host requests."""

WEBCHAT_CHANNEL_ID: Final[str] = "emulator"
"""Channel ID stamped on activities sent through the local Direct Line host."""
