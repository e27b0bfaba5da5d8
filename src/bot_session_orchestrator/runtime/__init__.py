"""Bot runtime supervision.

This module exports the runtime status machine and its collaborator
interfaces.
"""

from bot_session_orchestrator.runtime.controller import RuntimeController, StatusSource
from bot_session_orchestrator.runtime.exceptions import ProcessFailureError
from bot_session_orchestrator.runtime.status_machine import RuntimeStatusMachine

__all__ = [
    "ProcessFailureError",
    "RuntimeController",
    "RuntimeStatusMachine",
    "StatusSource",
]
