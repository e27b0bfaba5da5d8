"""Data models for Bot Session Orchestrator.

This module exports the conversation and runtime models used across
the package.
"""

from bot_session_orchestrator.models.conversation import (
    ChatMode,
    ConversationSession,
    ProcessCredentials,
    User,
)
from bot_session_orchestrator.models.runtime import ProcessStatus

__all__ = [
    "ChatMode",
    "ConversationSession",
    "ProcessCredentials",
    "ProcessStatus",
    "User",
]
