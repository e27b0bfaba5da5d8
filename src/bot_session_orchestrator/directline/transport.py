"""Direct Line channel transport.

This module provides the live messaging channel between a web chat user and
the bot: opening a channel for a conversation, sending and receiving
activities, ending the channel, and a passive error channel that surfaces
asynchronous transport failures.

Example:
    Open a channel and send a message::

        transport = DirectLineTransport("http://localhost:3000")
        handle = await transport.connect(
            "abc|conversation", mode=ChatMode.CONVERSATION, endpoint_id="e1", user_id="u1"
        )
        await handle.send_activity(activity)
        await handle.end()
"""

import asyncio
import contextlib
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Final, Protocol

import aiohttp
from botbuilder.schema import Activity

from bot_session_orchestrator.config import get_settings
from bot_session_orchestrator.constants import (
    CONVERSATION_ID_HEADER,
    DIRECTLINE_PATH,
    ERROR_CHANNEL_PATH,
)
from bot_session_orchestrator.directline.exceptions import TransportError
from bot_session_orchestrator.models import ChatMode

logger: Final = logging.getLogger(__name__)

ErrorCallback = Callable[[TransportError], Awaitable[None]]


class ChannelHandle(Protocol):
    """Protocol for a live channel bound to one conversation."""

    conversation_id: str

    async def send_activity(self, activity: Activity) -> str | None:
        """Push an activity to the bot."""
        ...

    async def end(self) -> None:
        """Terminate the channel. Idempotent."""
        ...


class ChannelTransport(Protocol):
    """Protocol for the messaging channel client."""

    async def connect(
        self, conversation_id: str, mode: ChatMode, endpoint_id: str, user_id: str
    ) -> ChannelHandle:
        """Open a live channel for a conversation."""
        ...

    async def connect_error_channel(self, callback: ErrorCallback) -> bool:
        """Subscribe to asynchronous transport failures."""
        ...

    async def close(self) -> None:
        """Release the error channel subscription."""
        ...


class DirectLineHandle:
    """Live Direct Line channel for a single conversation.

    Each handle owns its HTTP session, so ending it releases the connection
    without affecting other conversations.

    Attributes:
        conversation_id: Conversation the channel is bound to.
        endpoint_id: Endpoint the conversation is bound to.
        user_id: Participant on whose behalf activities are sent.
        watermark: Last activity watermark received.
    """

    def __init__(
        self,
        base_url: str,
        conversation_id: str,
        endpoint_id: str,
        user_id: str,
        session: aiohttp.ClientSession,
    ) -> None:
        """Initialize handle over an already connected session.

        Args:
            base_url: Direct Line host URL.
            conversation_id: Conversation the channel is bound to.
            endpoint_id: Endpoint the conversation is bound to.
            user_id: Participant ID.
            session: HTTP session exclusively owned by this handle.
        """
        self.base_url = base_url
        self.conversation_id = conversation_id
        self.endpoint_id = endpoint_id
        self.user_id = user_id
        self.watermark: str | None = None
        self._session = session
        self._ended = False

    @property
    def is_ended(self) -> bool:
        """Whether end() has been called."""
        return self._ended

    @property
    def _activities_url(self) -> str:
        return f"{self.base_url}{DIRECTLINE_PATH}/{self.conversation_id}/activities"

    def _ensure_open(self, operation: str) -> None:
        if self._ended:
            raise TransportError(
                "Channel has already ended",
                operation=operation,
                conversation_id=self.conversation_id,
            )

    async def send_activity(self, activity: Activity) -> str | None:
        """Push an activity to the bot.

        Args:
            activity: Activity to send.

        Returns:
            ID the host assigned to the activity, if any.

        Raises:
            TransportError: If the channel has ended or the host rejects the activity.
        """
        self._ensure_open("send_activity")
        try:
            async with self._session.post(
                self._activities_url, json=activity.serialize()
            ) as resp:
                if resp.status >= 400:
                    error_text = await resp.text()
                    raise TransportError(
                        f"Activity rejected: {error_text[:200]}",
                        operation="send_activity",
                        conversation_id=self.conversation_id,
                        status_code=resp.status,
                    )
                body = await resp.json()
        except TransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise TransportError(
                f"Failed to send activity: {e}",
                operation="send_activity",
                conversation_id=self.conversation_id,
            ) from e

        activity_id: str | None = body.get("id") if isinstance(body, dict) else None
        logger.debug(f"Sent {activity.type} activity {activity_id} to {self.conversation_id}")
        return activity_id

    async def get_activities(self) -> list[Activity]:
        """Receive activities posted since the last watermark.

        Returns:
            New activities, oldest first.

        Raises:
            TransportError: If the channel has ended or the host fails.
        """
        self._ensure_open("get_activities")
        params = {"watermark": self.watermark} if self.watermark else None
        try:
            async with self._session.get(self._activities_url, params=params) as resp:
                if resp.status >= 400:
                    error_text = await resp.text()
                    raise TransportError(
                        f"Failed to receive activities: {error_text[:200]}",
                        operation="get_activities",
                        conversation_id=self.conversation_id,
                        status_code=resp.status,
                    )
                body = await resp.json()
        except TransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise TransportError(
                f"Failed to receive activities: {e}",
                operation="get_activities",
                conversation_id=self.conversation_id,
            ) from e

        self.watermark = body.get("watermark", self.watermark)
        return [Activity.deserialize(raw) for raw in body.get("activities", [])]

    async def end(self) -> None:
        """Terminate the channel and release its connection. Idempotent.

        Raises:
            TransportError: If closing the connection fails.
        """
        if self._ended:
            return
        self._ended = True
        try:
            await self._session.close()
        except aiohttp.ClientError as e:
            raise TransportError(
                f"Failed to end channel: {e}",
                operation="end",
                conversation_id=self.conversation_id,
            ) from e
        logger.debug(f"Ended channel for {self.conversation_id}")


class DirectLineTransport:
    """Direct Line channel client.

    Opens per-conversation channels and maintains at most one error channel
    subscription.

    Like the backend client, channels have no deadline unless
    ``backend_request_timeout`` is configured.

    Attributes:
        base_url: Direct Line host URL.
        request_timeout: Total request timeout in seconds, or None.
    """

    def __init__(self, base_url: str | None = None, request_timeout: float | None = None) -> None:
        """Initialize transport.

        Args:
            base_url: Direct Line host URL. Defaults to the configured host.
            request_timeout: Total request timeout. Defaults to the configured value.
        """
        settings = get_settings()
        self.base_url = (base_url or settings.get_directline_base_url()).rstrip("/")
        self.request_timeout = (
            request_timeout if request_timeout is not None else settings.backend_request_timeout
        )
        self._error_task: asyncio.Task[None] | None = None
        self._error_session: aiohttp.ClientSession | None = None

    def _new_session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.request_timeout))

    async def connect(
        self, conversation_id: str, mode: ChatMode, endpoint_id: str, user_id: str
    ) -> DirectLineHandle:
        """Open a live channel for a conversation.

        Args:
            conversation_id: Conversation to join.
            mode: Chat mode of the conversation.
            endpoint_id: Endpoint the conversation is bound to.
            user_id: Participant ID.

        Returns:
            Handle exclusively owning the new channel.

        Raises:
            TransportError: If the host refuses or cannot be reached.
        """
        session = self._new_session()
        payload = {"mode": mode.value, "endpointId": endpoint_id, "userId": user_id}
        try:
            async with session.post(
                f"{self.base_url}{DIRECTLINE_PATH}",
                json=payload,
                headers={CONVERSATION_ID_HEADER: conversation_id},
            ) as resp:
                if resp.status >= 400:
                    error_text = await resp.text()
                    raise TransportError(
                        f"Channel refused: {error_text[:200]}",
                        operation="connect",
                        conversation_id=conversation_id,
                        status_code=resp.status,
                    )
        except TransportError:
            await session.close()
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            await session.close()
            raise TransportError(
                f"Failed to connect channel: {e}",
                operation="connect",
                conversation_id=conversation_id,
            ) from e

        logger.info(f"Connected channel for {conversation_id} (endpoint {endpoint_id})")
        return DirectLineHandle(self.base_url, conversation_id, endpoint_id, user_id, session)

    async def connect_error_channel(self, callback: ErrorCallback) -> bool:
        """Subscribe to asynchronous transport failures.

        Opens a websocket to the host's error channel and forwards every
        reported failure to ``callback`` as a TransportError. Calling this
        while a subscription is active is a no-op.

        Args:
            callback: Coroutine function receiving each failure.

        Returns:
            True once the subscription is in place.

        Raises:
            TransportError: If the error channel cannot be opened.
        """
        if self._error_task and not self._error_task.done():
            return True

        url = f"{self.base_url}{ERROR_CHANNEL_PATH}"
        self._error_session = self._new_session()
        try:
            ws = await self._error_session.ws_connect(url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            await self._error_session.close()
            self._error_session = None
            raise TransportError(
                f"Failed to open error channel: {e}", operation="connect_error_channel"
            ) from e

        self._error_task = asyncio.create_task(self._read_errors(ws, callback))
        logger.info("Subscribed to transport error channel")
        return True

    async def _read_errors(
        self, ws: aiohttp.ClientWebSocketResponse, callback: ErrorCallback
    ) -> None:
        """Forward error channel messages until the socket closes."""
        try:
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    await callback(self._to_transport_error(msg.data))
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    await callback(
                        TransportError(
                            f"Error channel failed: {ws.exception()}",
                            operation="error_channel",
                        )
                    )
                    break
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error channel reader stopped: {e}", exc_info=True)
        finally:
            await ws.close()

    @staticmethod
    def _to_transport_error(raw: str) -> TransportError:
        """Convert an error channel message into a TransportError."""
        try:
            data: Any = json.loads(raw)
        except ValueError:
            return TransportError(raw, operation="error_channel")

        if not isinstance(data, dict):
            return TransportError(str(data), operation="error_channel")

        return TransportError(
            data.get("message", "Transport failure reported by host"),
            operation="error_channel",
            conversation_id=data.get("conversationId"),
            details=data,
        )

    async def close(self) -> None:
        """Cancel the error channel subscription."""
        if self._error_task:
            self._error_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._error_task
            self._error_task = None
        if self._error_session:
            await self._error_session.close()
            self._error_session = None
