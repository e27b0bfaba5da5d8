"""HTTP client for the bot-management backend.

This module provides an async HTTP client for the conversation endpoints of
the Direct Line host: provisioning a conversation against a bot process,
rebinding an existing conversation to a new identifier, and exporting a
conversation transcript.

Example:
    Basic usage with context manager::

        async with BackendClient("http://localhost:3000") as backend:
            binding = await backend.start_conversation(
                bot_url="http://localhost:3978/api/messages",
                channel_service_type="public",
                members=[user],
                mode=ChatMode.CONVERSATION,
                credentials=ProcessCredentials(),
            )
"""

import asyncio
import logging
from typing import Any, Final, Protocol

import aiohttp
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bot_session_orchestrator.config import get_settings
from bot_session_orchestrator.constants import (
    CONVERSATION_ID_HEADER,
    CONVERSATION_UPDATE_PATH,
    CONVERSATIONS_PATH,
)
from bot_session_orchestrator.directline.exceptions import ProvisioningError
from bot_session_orchestrator.models import ChatMode, ProcessCredentials, User

logger: Final = logging.getLogger(__name__)


class ConversationBinding(BaseModel):
    """Conversation and endpoint returned by the backend."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field("", alias="conversationId")
    endpoint_id: str = Field(..., alias="endpointId")


class BotManagementBackend(Protocol):
    """Protocol for the bot-management backend.

    The session manager depends only on this interface so tests and
    alternative hosts can be plugged in.
    """

    async def start_conversation(
        self,
        bot_url: str,
        channel_service_type: str,
        members: list[User],
        mode: ChatMode,
        credentials: ProcessCredentials,
    ) -> ConversationBinding:
        """Provision a new conversation bound to a bot endpoint."""
        ...

    async def update_conversation(
        self, old_conversation_id: str, new_conversation_id: str, user_id: str
    ) -> ConversationBinding:
        """Rebind an existing conversation to a new identifier."""
        ...

    async def get_transcript(self, conversation_id: str) -> list[dict[str, Any]]:
        """Fetch every activity exchanged in a conversation."""
        ...


class BackendClient:
    """aiohttp client for the Direct Line host conversation endpoints.

    No retries are attempted; a rejected request is surfaced as a
    ProvisioningError and recovery is left to the caller. Requests have no
    deadline unless ``backend_request_timeout`` is configured.

    Attributes:
        base_url: Base URL of the Direct Line host.
        session: aiohttp client session (initialized via context manager).
        request_timeout: Total request timeout in seconds, or None.
    """

    def __init__(self, base_url: str | None = None, request_timeout: float | None = None) -> None:
        """Initialize backend client.

        Args:
            base_url: Direct Line host URL. Defaults to the configured host.
            request_timeout: Total request timeout. Defaults to the configured value.
        """
        settings = get_settings()
        self.base_url = (base_url or settings.get_directline_base_url()).rstrip("/")
        self.request_timeout = (
            request_timeout if request_timeout is not None else settings.backend_request_timeout
        )
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "BackendClient":
        """Enter async context manager, creating HTTP session.

        Returns:
            Self for use in async with statement.
        """
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit async context manager, closing HTTP session."""
        await self.close()

    async def open(self) -> None:
        """Create the HTTP session if it does not exist yet."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.request_timeout)
            )

    async def close(self) -> None:
        """Close the HTTP session."""
        if self.session:
            await self.session.close()

    async def _send_request(
        self,
        operation: str,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        conversation_id: str | None = None,
    ) -> Any:
        """Send a JSON request to the backend and return the decoded body.

        Args:
            operation: Operation name used in logs and errors.
            method: HTTP method.
            path: Path relative to the host URL.
            payload: Optional JSON body.
            headers: Optional extra headers.
            conversation_id: Conversation the request targets, for error context.

        Returns:
            Decoded JSON response body.

        Raises:
            ProvisioningError: If the session is missing, the request fails,
                or the backend answers with an error status.
        """
        if not self.session:
            raise ProvisioningError(
                "Session not initialized - use async with context manager",
                operation=operation,
                conversation_id=conversation_id,
            )

        url = f"{self.base_url}{path}"
        logger.debug(f"Backend {operation}: {method} {url}")

        try:
            async with self.session.request(method, url, json=payload, headers=headers) as resp:
                if resp.status >= 400:
                    error_text = await resp.text()
                    raise ProvisioningError(
                        f"Backend rejected {operation}: {error_text[:200]}",
                        operation=operation,
                        conversation_id=conversation_id,
                        status_code=resp.status,
                    )
                return await resp.json()
        except ProvisioningError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ProvisioningError(
                f"Backend request failed: {e}",
                operation=operation,
                conversation_id=conversation_id,
            ) from e

    @staticmethod
    def _parse_binding(
        operation: str, body: Any, conversation_id: str | None = None
    ) -> ConversationBinding:
        """Validate a backend response into a ConversationBinding."""
        try:
            return ConversationBinding.model_validate(body)
        except ValidationError as e:
            raise ProvisioningError(
                "Backend returned an invalid conversation binding",
                operation=operation,
                conversation_id=conversation_id,
                details={"body": body},
            ) from e

    async def start_conversation(
        self,
        bot_url: str,
        channel_service_type: str,
        members: list[User],
        mode: ChatMode,
        credentials: ProcessCredentials,
    ) -> ConversationBinding:
        """Provision a new conversation bound to a bot endpoint.

        Args:
            bot_url: Messaging endpoint of the bot process.
            channel_service_type: Channel service discriminator.
            members: Conversation participants.
            mode: Chat mode of the conversation.
            credentials: Bot process credentials.

        Returns:
            The new conversation ID and endpoint ID.

        Raises:
            ProvisioningError: If the backend rejects the request.
        """
        payload = {
            "botUrl": bot_url,
            "channelServiceType": channel_service_type,
            "members": [member.model_dump() for member in members],
            "mode": mode.value,
            "msaAppId": credentials.app_id,
            "msaPassword": credentials.app_password,
        }
        body = await self._send_request(
            "start_conversation", "POST", CONVERSATIONS_PATH, payload=payload
        )
        binding = self._parse_binding("start_conversation", body)
        if not binding.conversation_id:
            raise ProvisioningError(
                "Backend did not return a conversation ID",
                operation="start_conversation",
                details={"body": body},
            )

        logger.info(
            f"Started conversation {binding.conversation_id} on endpoint {binding.endpoint_id}"
        )
        return binding

    async def update_conversation(
        self, old_conversation_id: str, new_conversation_id: str, user_id: str
    ) -> ConversationBinding:
        """Rebind an existing conversation to a new identifier.

        Args:
            old_conversation_id: Conversation being replaced.
            new_conversation_id: Identifier to bind (may equal the old one).
            user_id: Participant of the conversation.

        Returns:
            Binding carrying the new conversation ID and its endpoint ID.

        Raises:
            ProvisioningError: If the backend rejects the request.
        """
        body = await self._send_request(
            "update_conversation",
            "PUT",
            CONVERSATION_UPDATE_PATH,
            payload={"conversationId": new_conversation_id, "userId": user_id},
            headers={CONVERSATION_ID_HEADER: old_conversation_id},
            conversation_id=old_conversation_id,
        )
        binding = self._parse_binding("update_conversation", body, old_conversation_id)
        # The host only echoes the endpoint, the new ID is ours
        binding = binding.model_copy(update={"conversation_id": new_conversation_id})

        logger.info(
            f"Updated conversation {old_conversation_id} -> {new_conversation_id} "
            f"on endpoint {binding.endpoint_id}"
        )
        return binding

    async def get_transcript(self, conversation_id: str) -> list[dict[str, Any]]:
        """Fetch every activity exchanged in a conversation.

        Args:
            conversation_id: Conversation to export.

        Returns:
            Activities in the order they were exchanged.

        Raises:
            ProvisioningError: If the backend rejects the request or
                returns something other than a list of activities.
        """
        body = await self._send_request(
            "get_transcript",
            "GET",
            f"{CONVERSATIONS_PATH}/{conversation_id}/transcripts",
            conversation_id=conversation_id,
        )
        if not isinstance(body, list):
            raise ProvisioningError(
                "Backend returned an invalid transcript",
                operation="get_transcript",
                conversation_id=conversation_id,
                details={"body": body},
            )
        activities: list[dict[str, Any]] = body
        logger.debug(f"Fetched {len(activities)} transcript activities for {conversation_id}")
        return activities
