"""Web chat session management.

This module exports the session manager, session stores, identity
generation and session exceptions.
"""

from bot_session_orchestrator.session.exceptions import SessionNotFoundError
from bot_session_orchestrator.session.identity import IdentityGenerator, parse_chat_mode
from bot_session_orchestrator.session.manager import ConversationSessionManager
from bot_session_orchestrator.session.store import (
    InMemorySessionStore,
    JsonFileSessionStore,
    SessionStore,
    create_session_store,
)

__all__ = [
    "ConversationSessionManager",
    "IdentityGenerator",
    "InMemorySessionStore",
    "JsonFileSessionStore",
    "SessionNotFoundError",
    "SessionStore",
    "create_session_store",
    "parse_chat_mode",
]
