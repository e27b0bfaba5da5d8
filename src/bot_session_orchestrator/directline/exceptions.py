"""Custom exceptions for Direct Line host operations.

This module defines the exceptions raised when talking to the bot-management
backend and the Direct Line channel. The split lets callers tell a rejected
provisioning request (retry provisioning) from a channel that could not
connect (retry the connection).

Example:
    Handle establishment failures::

        from bot_session_orchestrator.directline.exceptions import (
            ProvisioningError,
            TransportError,
        )

        try:
            session = await manager.establish(bot_url, credentials)
        except ProvisioningError as e:
            logger.error(f"Backend rejected the conversation: {e}")
        except TransportError as e:
            logger.error(f"Channel could not connect: {e}")
"""

from typing import Any


class DirectLineError(Exception):
    """Base exception for all Direct Line host errors.

    Attributes:
        message: Human-readable error message.
        operation: Operation that failed (e.g., 'start_conversation').
        conversation_id: Conversation the operation targeted, if known.
        status_code: HTTP status code if the host answered.
        details: Additional error context as dictionary.
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        conversation_id: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize Direct Line error with context.

        Args:
            message: Human-readable error message.
            operation: Operation that failed. Defaults to None.
            conversation_id: Targeted conversation ID. Defaults to None.
            status_code: HTTP status code if available. Defaults to None.
            details: Additional error context. Defaults to None.
        """
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.conversation_id = conversation_id
        self.status_code = status_code
        self.details = details or {}

    def __str__(self) -> str:
        """Return formatted error string with context."""
        parts = [self.message]
        if self.operation:
            parts.append(f"Operation: {self.operation}")
        if self.conversation_id:
            parts.append(f"Conversation: {self.conversation_id}")
        if self.status_code is not None:
            parts.append(f"Status: {self.status_code}")
        return " | ".join(parts)


class ProvisioningError(DirectLineError):
    """Raised when the bot-management backend rejects a request.

    Covers conversation creation, conversation updates and transcript
    retrieval. Recovery is to retry provisioning.
    """


class TransportError(DirectLineError):
    """Raised when the Direct Line channel fails.

    Covers connecting, ending, sending and receiving on a channel, and
    asynchronous failures surfaced through the error channel. Recovery is
    to retry the connection.
    """
