"""User and conversation identifier generation."""

import logging
import uuid
from typing import Final

from bot_session_orchestrator.constants import CONVERSATION_ID_SEPARATOR, DEFAULT_USER_NAME
from bot_session_orchestrator.models import ChatMode, User

logger: Final = logging.getLogger(__name__)


class IdentityGenerator:
    """Produces unique user and conversation identifiers.

    One generator stands for one browser session: ``get_user`` creates the
    user on first call and returns the same instance afterwards.

    Example:
        >>> identity = IdentityGenerator()
        >>> identity.get_user() is identity.get_user()
        True
        >>> identity.new_conversation_id(ChatMode.LIVECHAT).endswith("|livechat")
        True
    """

    def __init__(self, user_name: str = DEFAULT_USER_NAME) -> None:
        """Initialize generator.

        Args:
            user_name: Display name of the generated user.
        """
        self.user_name = user_name
        self._user: User | None = None

    def generate_unique_id(self) -> str:
        """Generate a new unique token."""
        return str(uuid.uuid4())

    def get_user(self) -> User:
        """Get the user of this session, creating it on first use.

        Returns:
            The shared User instance.
        """
        if self._user is None:
            self._user = User(id=self.generate_unique_id(), name=self.user_name)
            logger.debug(f"Generated web chat user {self._user.id}")
        return self._user

    def new_conversation_id(self, chat_mode: ChatMode) -> str:
        """Build a fresh ``<token>|<chat mode>`` conversation identifier.

        Args:
            chat_mode: Mode encoded as the identifier suffix.

        Returns:
            New conversation identifier.
        """
        return f"{self.generate_unique_id()}{CONVERSATION_ID_SEPARATOR}{chat_mode.value}"


def parse_chat_mode(conversation_id: str) -> ChatMode | None:
    """Extract the chat mode suffix from a conversation identifier.

    Args:
        conversation_id: Identifier of the form ``<token>|<chat mode>``.

    Returns:
        The encoded chat mode, or None if the identifier carries none.

    Example:
        >>> parse_chat_mode("1234|livechat")
        <ChatMode.LIVECHAT: 'livechat'>
        >>> parse_chat_mode("1234") is None
        True
    """
    _, separator, suffix = conversation_id.rpartition(CONVERSATION_ID_SEPARATOR)
    if not separator:
        return None
    try:
        return ChatMode(suffix)
    except ValueError:
        return None
