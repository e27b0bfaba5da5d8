"""Session storage for Bot Session Orchestrator.

This module provides the storage backends mapping conversation identifiers
to session records. Entries are created when a session first connects and
overwritten on restart. They are never pruned implicitly.
"""

import json
import logging
import os
from abc import abstractmethod
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from bot_session_orchestrator.models import ConversationSession

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Protocol for session storage backends.

    This protocol defines the interface for storing and retrieving
    conversation session records keyed by conversation identifier.
    """

    @abstractmethod
    async def get_session(self, conversation_id: str) -> ConversationSession | None:
        """Get a session record by conversation ID.

        Args:
            conversation_id: Conversation identifier.

        Returns:
            Session record if found, None otherwise.
        """
        ...

    @abstractmethod
    async def set_session(self, session: ConversationSession) -> None:
        """Store a session record, replacing any record with the same ID.

        Args:
            session: Session record to store.
        """
        ...

    @abstractmethod
    async def list_sessions(self) -> list[ConversationSession]:
        """List every stored session record.

        Returns:
            Stored session records.
        """
        ...


class InMemorySessionStore:
    """In-memory session storage for development and testing.

    Data is lost when the application restarts. Use JsonFileSessionStore
    when sessions must survive a reload.

    Example:
        >>> store = InMemorySessionStore()
        >>> await store.set_session(session)
        >>> retrieved = await store.get_session(session.conversation_id)
    """

    def __init__(self) -> None:
        """Initialize in-memory storage."""
        self._sessions: dict[str, ConversationSession] = {}
        logger.info("Initialized in-memory session store")

    async def get_session(self, conversation_id: str) -> ConversationSession | None:
        """Get a session record by conversation ID."""
        return self._sessions.get(conversation_id)

    async def set_session(self, session: ConversationSession) -> None:
        """Store a session record."""
        self._sessions[session.conversation_id] = session
        logger.debug(f"Stored session {session.conversation_id}")

    async def list_sessions(self) -> list[ConversationSession]:
        """List every stored session record."""
        return list(self._sessions.values())


class JsonFileSessionStore(InMemorySessionStore):
    """Durable session storage backed by a JSON file.

    Every write rewrites the file atomically. Live channel handles are only
    kept in memory, so records loaded from disk after a reload carry no
    handle until the session is restarted.

    Attributes:
        path: JSON file holding the session records.
    """

    def __init__(self, path: Path | str) -> None:
        """Initialize file storage, loading any previously saved sessions.

        Args:
            path: JSON file to read from and write to.
        """
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read session store {self.path}: {e}")
            return

        for conversation_id, data in raw.items():
            try:
                self._sessions[conversation_id] = ConversationSession.model_validate(data)
            except ValidationError as e:
                logger.warning(f"Skipping invalid stored session {conversation_id}: {e}")

        logger.info(f"Loaded {len(self._sessions)} sessions from {self.path}")

    def _save(self) -> None:
        data = {
            conversation_id: session.model_dump(mode="json")
            for conversation_id, session in self._sessions.items()
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)

    async def set_session(self, session: ConversationSession) -> None:
        """Store a session record and persist the store to disk."""
        await super().set_session(session)
        self._save()


def create_session_store(path: Path | str | None = None) -> SessionStore:
    """Create a session store for the given location.

    Args:
        path: JSON file for durable storage. In-memory storage if None.

    Returns:
        Configured session store.

    Example:
        >>> store = create_session_store()
        >>> # Use for development and testing
    """
    if path is None:
        return InMemorySessionStore()
    return JsonFileSessionStore(path)
