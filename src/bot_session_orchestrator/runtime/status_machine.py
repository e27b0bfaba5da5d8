"""Runtime status supervision with polling.

This module provides RuntimeStatusMachine, which supervises the provisioning
lifecycle of one bot project. Status observations (poll results or pushed
events) drive the machine; it owns the polling task and a single pending
final-poll slot, and calls the runtime controller to start or stop the bot.

Transitions:
    - failed: stop polling, stop the process. Terminal until reset().
    - published: stop polling, start a fresh runtime instance.
    - reloading: start polling (idempotent).
    - connected: if polling, take exactly one more sample after a delay,
      then stop polling.
"""

import asyncio
import contextlib
import logging
from typing import Final

from bot_session_orchestrator.config import get_settings
from bot_session_orchestrator.models import ProcessStatus
from bot_session_orchestrator.runtime.controller import RuntimeController, StatusSource
from bot_session_orchestrator.runtime.exceptions import ProcessFailureError

logger: Final = logging.getLogger(__name__)


class RuntimeStatusMachine:
    """Finite-state supervisor of one bot process.

    At most one polling task and at most one pending final poll exist at any
    time. Neither is reachable from outside the machine.

    Attributes:
        project_id: Project whose bot process is supervised.
        controller: Start/stop primitives for the process.
        status_source: Status endpoint polled while reloading.
        polling_interval: Seconds between polls.
        final_poll_delay: Seconds before the final poll after connecting.
        status: Last observed status.
        failure: Failure recorded when the process reported failed or a polled
            transition could not be applied.
        poll_count: Number of status queries issued.

    Example:
        >>> machine = RuntimeStatusMachine("project-1", controller, status_source)
        >>> await machine.observe(ProcessStatus.RELOADING)
        >>> machine.is_polling
        True
        >>> await machine.close()
    """

    def __init__(
        self,
        project_id: str,
        controller: RuntimeController,
        status_source: StatusSource,
        polling_interval: float | None = None,
        final_poll_delay: float | None = None,
    ) -> None:
        """Initialize the status machine in the UNKNOWN state.

        Args:
            project_id: Project to supervise.
            controller: Runtime controller.
            status_source: Status endpoint to poll.
            polling_interval: Poll interval. Defaults to the configured value.
            final_poll_delay: Final poll delay. Defaults to the configured value.
        """
        settings = get_settings()
        self.project_id = project_id
        self.controller = controller
        self.status_source = status_source
        self.polling_interval = (
            polling_interval if polling_interval is not None else settings.polling_interval_seconds
        )
        self.final_poll_delay = (
            final_poll_delay if final_poll_delay is not None else settings.final_poll_delay_seconds
        )
        self.status = ProcessStatus.UNKNOWN
        self.failure: ProcessFailureError | None = None
        self.poll_count = 0
        self._polling_task: asyncio.Task[None] | None = None
        self._final_poll_task: asyncio.Task[None] | None = None
        logger.debug(f"RuntimeStatusMachine initialized for project {project_id}")

    @property
    def is_polling(self) -> bool:
        """Whether the polling timer is active."""
        return self._polling_task is not None

    @property
    def has_pending_final_poll(self) -> bool:
        """Whether a delayed final poll is waiting to fire."""
        return self._final_poll_task is not None

    async def observe(self, status: ProcessStatus) -> None:
        """Apply a status observation.

        Args:
            status: Observed process status.
        """
        if self.status is ProcessStatus.FAILED and status is not ProcessStatus.FAILED:
            logger.info(
                f"Ignoring {status.value} for project {self.project_id}: "
                "runtime failed, reset required"
            )
            return

        if status is not self.status:
            logger.info(
                f"Project {self.project_id} runtime status {self.status.value} -> {status.value}"
            )
        self.status = status

        if status is ProcessStatus.FAILED:
            self._stop_polling()
            self._cancel_final_poll()
            self.failure = ProcessFailureError(
                "Bot runtime reported failure", project_id=self.project_id
            )
            logger.error(f"Stopping failed runtime: {self.failure}")
            await self.controller.stop(self.project_id)

        elif status is ProcessStatus.PUBLISHED:
            self._stop_polling()
            self._cancel_final_poll()
            await self.controller.start(self.project_id, force_fresh=True)

        elif status is ProcessStatus.RELOADING:
            self._start_polling()

        elif status is ProcessStatus.CONNECTED:
            if self.is_polling and self._final_poll_task is None:
                self._final_poll_task = asyncio.create_task(self._delayed_final_poll())
            self._stop_polling()

    def _start_polling(self) -> None:
        if self._polling_task is not None:
            return
        self._polling_task = asyncio.create_task(self._polling_loop())
        logger.debug(f"Started status polling for project {self.project_id}")

    def _stop_polling(self) -> None:
        task = self._polling_task
        self._polling_task = None
        if task is None:
            return
        # A poll that triggered this transition exits its loop on its own
        if task is not asyncio.current_task():
            task.cancel()
        logger.debug(f"Stopped status polling for project {self.project_id}")

    def _cancel_final_poll(self) -> None:
        task = self._final_poll_task
        self._final_poll_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _polling_loop(self) -> None:
        """Poll the status source until this task is no longer the active timer."""
        task = asyncio.current_task()
        while self._polling_task is task:
            await asyncio.sleep(self.polling_interval)
            if self._polling_task is not task:
                break
            await self._poll_once()

    async def _delayed_final_poll(self) -> None:
        """Take one last status sample after the final poll delay."""
        await asyncio.sleep(self.final_poll_delay)
        self._final_poll_task = None
        await self._poll_once()

    async def _poll_once(self) -> None:
        self.poll_count += 1
        try:
            status = await self.status_source.query(self.project_id)
        except Exception as e:
            logger.error(f"Status poll failed for project {self.project_id}: {e}", exc_info=True)
            return

        # Nothing awaits a background poll, controller errors end here
        try:
            await self.observe(status)
        except Exception as e:
            self.failure = ProcessFailureError(
                f"Failed to apply polled status {status.value}",
                project_id=self.project_id,
                details={"status": status.value, "error": str(e)},
            )
            logger.error(f"{self.failure}: {e}", exc_info=True)

    def reset(self) -> None:
        """Return to UNKNOWN so a re-published runtime can be supervised again."""
        self._stop_polling()
        self._cancel_final_poll()
        self.status = ProcessStatus.UNKNOWN
        self.failure = None
        logger.info(f"Reset runtime status machine for project {self.project_id}")

    async def close(self) -> None:
        """Cancel polling and any pending final poll (the project was closed)."""
        tasks = [t for t in (self._polling_task, self._final_poll_task) if t is not None]
        self._polling_task = None
        self._final_poll_task = None
        for task in tasks:
            if task is asyncio.current_task():
                continue
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info(f"RuntimeStatusMachine closed for project {self.project_id}")
