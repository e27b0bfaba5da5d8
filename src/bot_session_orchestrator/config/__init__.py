"""Configuration management for Bot Session Orchestrator.

This module exports the main Settings class and configuration utilities.
"""

from bot_session_orchestrator.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
