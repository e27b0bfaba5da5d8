"""Bot Session Orchestrator main entry point."""

import logging
import sys

from bot_session_orchestrator.config import get_settings
from bot_session_orchestrator.version import __version__


def main() -> int:
    """Main entry point for the application.

    Configures logging from settings and prints the effective
    Direct Line configuration.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("Bot Session Orchestrator - bot runtime and web chat session management")
    print(f"Version: {__version__}")
    print(f"Direct Line host: {settings.get_directline_base_url()}")
    print(f"Bot endpoint: {settings.bot_url}")
    print(f"Session store: {settings.session_store_path or 'in-memory'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
