"""Collaborator interfaces for bot runtime supervision.

The status machine starts and stops the bot process and polls its status
through these protocols. Concrete implementations belong to the host
application (publishing pipeline, process launcher, status endpoint).
"""

from typing import Protocol

from bot_session_orchestrator.models import ProcessStatus


class RuntimeController(Protocol):
    """Start/stop primitives for a bot process."""

    async def start(self, project_id: str, force_fresh: bool) -> None:
        """Begin provisioning the bot process.

        The outcome is observed through status polling, not returned.

        Args:
            project_id: Project whose bot should run.
            force_fresh: Request a new runtime instance instead of reusing one.
        """
        ...

    async def stop(self, project_id: str) -> None:
        """Halt the bot process. Idempotent.

        Args:
            project_id: Project whose bot should stop.
        """
        ...


class StatusSource(Protocol):
    """Queryable status endpoint of a bot process."""

    async def query(self, project_id: str) -> ProcessStatus:
        """Get the current provisioning status.

        May transiently report UNKNOWN.

        Args:
            project_id: Project to query.

        Returns:
            Current process status.
        """
        ...
