"""Runtime supervision exceptions."""

from typing import Any


class ProcessFailureError(Exception):
    """Recorded when a supervised bot process fails.

    Covers a reported failed status, and a start or stop request that
    errored while a background poll was applying a status.

    The status machine never raises this to its caller. It stops the process
    and keeps the error on ``RuntimeStatusMachine.failure`` so owners can
    report it and decide whether to re-publish.

    Attributes:
        message: Human-readable error message.
        project_id: Project whose process failed.
        details: Additional error context as dictionary.
    """

    def __init__(
        self,
        message: str,
        project_id: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize process failure with context.

        Args:
            message: Human-readable error message.
            project_id: Project whose process failed.
            details: Additional error context. Defaults to None.
        """
        super().__init__(message)
        self.message = message
        self.project_id = project_id
        self.details = details or {}

    def __str__(self) -> str:
        """Return formatted error string with context."""
        return f"{self.message} | Project: {self.project_id}"
