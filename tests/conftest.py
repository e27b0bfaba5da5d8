"""Pytest configuration and shared fixtures."""

import pytest

from bot_session_orchestrator.models import ProcessCredentials, User


@pytest.fixture
def sample_user() -> User:
    """Provide a sample web chat user for testing.

    Returns:
        User with a fixed ID.
    """
    return User(id="u1", name="User")


@pytest.fixture
def sample_credentials() -> ProcessCredentials:
    """Provide sample bot credentials for testing.

    Returns:
        Bot process credentials.
    """
    return ProcessCredentials(app_id="app-123", app_password="secret")


@pytest.fixture
def sample_bot_url() -> str:
    """Provide a sample bot messaging endpoint for testing.

    Returns:
        Bot messaging endpoint URL.
    """
    return "http://localhost:3978/api/messages"
