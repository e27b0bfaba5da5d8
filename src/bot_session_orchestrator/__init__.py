"""Bot Session Orchestrator - runtime supervision and web chat sessions.

This package supervises a locally provisioned bot runtime through status
polling and manages the Direct Line chat sessions bound to it: establishing,
persisting, restarting and exporting conversations.
"""

from bot_session_orchestrator.version import __version__

__author__ = "Bot Session Orchestrator Contributors"
__license__ = "MIT"

__all__ = ["__author__", "__license__", "__version__"]
