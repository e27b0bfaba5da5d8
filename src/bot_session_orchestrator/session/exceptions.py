"""Session-specific exceptions."""

from bot_session_orchestrator.directline.exceptions import DirectLineError


class SessionNotFoundError(DirectLineError):
    """Raised when an operation references an unknown conversation.

    This is a caller-input error. It is raised before any backend or
    channel call is made.

    Example:
        >>> raise SessionNotFoundError("No session stored", conversation_id="abc|conversation")
        Traceback (most recent call last):
        ...
        SessionNotFoundError: No session stored | Conversation: abc|conversation
    """
