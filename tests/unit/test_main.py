"""Tests for the main entry point."""

import pytest

from bot_session_orchestrator.__main__ import main
from bot_session_orchestrator.version import __version__


def test_main_returns_zero() -> None:
    """Test that main function returns 0 (success exit code)."""
    result = main()
    assert result == 0


def test_main_prints_configuration(capsys: pytest.CaptureFixture[str]) -> None:
    """Test that the effective configuration is printed."""
    main()

    output = capsys.readouterr().out
    assert f"Version: {__version__}" in output
    assert "Direct Line host: http://localhost:3000" in output
    assert "Session store: in-memory" in output
