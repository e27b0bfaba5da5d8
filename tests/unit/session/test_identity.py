"""Tests for identifier generation."""

import re

from bot_session_orchestrator.models import ChatMode
from bot_session_orchestrator.session import IdentityGenerator, parse_chat_mode


class TestIdentityGenerator:
    """Test suite for IdentityGenerator."""

    def test_user_created_once(self) -> None:
        """Test the same user is returned for the whole session."""
        identity = IdentityGenerator()

        assert identity.get_user() is identity.get_user()
        assert identity.get_user().name == "User"

    def test_generators_have_distinct_users(self) -> None:
        """Test separate sessions get separate users."""
        assert IdentityGenerator().get_user().id != IdentityGenerator().get_user().id

    def test_custom_user_name(self) -> None:
        """Test the display name can be chosen."""
        assert IdentityGenerator(user_name="Tester").get_user().name == "Tester"

    def test_new_conversation_id_format(self) -> None:
        """Test conversation IDs encode the chat mode as suffix."""
        identity = IdentityGenerator()

        conversation_id = identity.new_conversation_id(ChatMode.CONVERSATION)

        assert re.fullmatch(r"[0-9a-f-]{36}\|conversation", conversation_id)

    def test_new_conversation_ids_are_unique(self) -> None:
        """Test every call issues a new token."""
        identity = IdentityGenerator()

        ids = {identity.new_conversation_id(ChatMode.LIVECHAT) for _ in range(50)}

        assert len(ids) == 50


class TestParseChatMode:
    """Test suite for parse_chat_mode."""

    def test_parse_conversation(self) -> None:
        """Test the conversation suffix is recognized."""
        assert parse_chat_mode("1234|conversation") is ChatMode.CONVERSATION

    def test_parse_livechat(self) -> None:
        """Test the livechat suffix is recognized."""
        assert parse_chat_mode("1234|livechat") is ChatMode.LIVECHAT

    def test_parse_without_suffix(self) -> None:
        """Test identifiers without a separator carry no mode."""
        assert parse_chat_mode("1234") is None

    def test_parse_unknown_suffix(self) -> None:
        """Test an unrecognized suffix carries no mode."""
        assert parse_chat_mode("1234|other") is None

    def test_parse_uses_last_separator(self) -> None:
        """Test only the final segment is treated as the mode."""
        assert parse_chat_mode("a|b|livechat") is ChatMode.LIVECHAT
