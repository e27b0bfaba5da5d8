"""Tests for conversation and runtime models."""

import pytest
from pydantic import ValidationError

from bot_session_orchestrator.models import (
    ChatMode,
    ConversationSession,
    ProcessCredentials,
    ProcessStatus,
    User,
)


class TestUser:
    """Tests for User model."""

    def test_default_name(self) -> None:
        """Test users default to the generic display name."""
        assert User(id="u1").name == "User"

    def test_empty_id_rejected(self) -> None:
        """Test an empty ID is invalid."""
        with pytest.raises(ValidationError):
            User(id="")

    def test_user_is_immutable(self, sample_user: User) -> None:
        """Test users cannot be changed in place."""
        with pytest.raises(ValidationError):
            sample_user.id = "u2"  # type: ignore[misc]


class TestProcessCredentials:
    """Tests for ProcessCredentials model."""

    def test_password_hidden_from_repr(self, sample_credentials: ProcessCredentials) -> None:
        """Test the password does not leak into logs via repr."""
        assert "secret" not in repr(sample_credentials)
        assert "app-123" in repr(sample_credentials)


class TestConversationSession:
    """Tests for ConversationSession model."""

    def test_identity_fields_are_immutable(self, sample_user: User) -> None:
        """Test records cannot be mutated in place."""
        session = ConversationSession(conversation_id="c1", user=sample_user, endpoint_id="e1")

        with pytest.raises(ValidationError):
            session.conversation_id = "c2"  # type: ignore[misc]

    def test_defaults(self, sample_user: User) -> None:
        """Test defaults for a minimal record."""
        session = ConversationSession(conversation_id="c1", user=sample_user, endpoint_id="e1")

        assert session.chat_mode is ChatMode.CONVERSATION
        assert session.channel_handle is None
        assert session.is_connected is False
        assert session.created_at.tzinfo is not None

    def test_handle_excluded_from_dump(self, sample_user: User) -> None:
        """Test the live handle is never serialized."""
        session = ConversationSession(
            conversation_id="c1", user=sample_user, endpoint_id="e1", channel_handle=object()
        )

        data = session.model_dump(mode="json")

        assert "channel_handle" not in data
        assert data["chat_mode"] == "conversation"
        assert session.is_connected is True


class TestProcessStatus:
    """Tests for ProcessStatus parsing."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("reloading", ProcessStatus.RELOADING),
            ("Connected", ProcessStatus.CONNECTED),
            ("PUBLISHED", ProcessStatus.PUBLISHED),
            ("failed", ProcessStatus.FAILED),
            ("unknown", ProcessStatus.UNKNOWN),
            ("starting", ProcessStatus.UNKNOWN),
            ("", ProcessStatus.UNKNOWN),
            (None, ProcessStatus.UNKNOWN),
        ],
    )
    def test_parse(self, raw: str | None, expected: ProcessStatus) -> None:
        """Test raw statuses map onto the enum, unknown values to UNKNOWN."""
        assert ProcessStatus.parse(raw) is expected
