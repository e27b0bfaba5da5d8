"""Conversation session management for web chat.

This module provides ConversationSessionManager, which owns the protocol for
creating, continuing, restarting and exporting a chat session bound to a
running bot process.

Calls for the same conversation identifier are serialized, and the old
channel is always ended before a new one is opened. Calls for different
identifiers are independent, even against the same bot. Every establish or
restart takes a ticket when it starts; a call whose identifier was already
claimed by a later ticket is stale and returns without touching the store.
"""

import asyncio
import json
import logging
from typing import Final

from botbuilder.schema import Activity, ActivityTypes, ChannelAccount

from bot_session_orchestrator.constants import CHANNEL_SERVICE_TYPE_PUBLIC, WEBCHAT_CHANNEL_ID
from bot_session_orchestrator.directline import (
    BotManagementBackend,
    ChannelHandle,
    ChannelTransport,
    ErrorCallback,
    TransportError,
)
from bot_session_orchestrator.models import (
    ChatMode,
    ConversationSession,
    ProcessCredentials,
    User,
)
from bot_session_orchestrator.session.exceptions import SessionNotFoundError
from bot_session_orchestrator.session.identity import IdentityGenerator, parse_chat_mode
from bot_session_orchestrator.session.store import SessionStore

logger: Final = logging.getLogger(__name__)


class ConversationSessionManager:
    """Establishes, persists, restarts and exports chat sessions.

    The manager exclusively owns the channel handle of every session it
    stores. Callers observe the current handle through ``get_session``.

    Attributes:
        backend: Bot-management backend used to provision conversations.
        transport: Channel transport used to open live channels.
        store: Session store records are persisted to.
        identity: Generator for users and conversation identifiers.
        channel_service_type: Discriminator sent when provisioning.

    Example:
        >>> manager = ConversationSessionManager(backend, transport, InMemorySessionStore())
        >>> session = await manager.establish(bot_url, credentials)
        >>> session = await manager.restart(session.conversation_id, reuse_identifier=False)
        >>> transcript = await manager.export_transcript(session.conversation_id)
    """

    def __init__(
        self,
        backend: BotManagementBackend,
        transport: ChannelTransport,
        store: SessionStore,
        identity: IdentityGenerator | None = None,
        channel_service_type: str = CHANNEL_SERVICE_TYPE_PUBLIC,
    ) -> None:
        """Initialize session manager.

        Args:
            backend: Bot-management backend.
            transport: Channel transport.
            store: Session store.
            identity: Identity generator. A new one is created if None.
            channel_service_type: Channel service discriminator.
        """
        self.backend = backend
        self.transport = transport
        self.store = store
        self.identity = identity or IdentityGenerator()
        self.channel_service_type = channel_service_type
        self._locks: dict[str, asyncio.Lock] = {}
        self._last_ticket = 0
        self._claims: dict[str, int] = {}
        logger.info(f"Initialized conversation session manager with {type(store).__name__}")

    def _lock_for(self, conversation_id: str) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = self._locks[conversation_id] = asyncio.Lock()
        return lock

    def _next_ticket(self) -> int:
        self._last_ticket += 1
        return self._last_ticket

    def _claim(self, conversation_id: str, ticket: int) -> bool:
        """Record a call as the latest for an ID. False if a later call got there first."""
        if ticket < self._claims.get(conversation_id, 0):
            return False
        self._claims[conversation_id] = ticket
        return True

    async def _discard(self, handle: ChannelHandle, reason: str) -> None:
        """End a channel that will never be adopted into the store."""
        try:
            await handle.end()
        except TransportError as e:
            logger.warning(f"Failed to end discarded channel {handle.conversation_id}: {e}")
        logger.info(f"Discarded channel {handle.conversation_id}: {reason}")

    async def _send_initial_activity(self, handle: ChannelHandle, user: User) -> None:
        """Announce the participants so the bot can initialize its context."""
        member = ChannelAccount(id=user.id, name=user.name)
        activity = Activity(
            type=ActivityTypes.conversation_update,
            channel_id=WEBCHAT_CHANNEL_ID,
            from_property=member,
            members_added=[member],
            members_removed=[],
        )
        try:
            await handle.send_activity(activity)
        except TransportError:
            await self._discard(handle, "initial activity failed")
            raise

    async def _adopt(self, handle: ChannelHandle, session: ConversationSession) -> None:
        """Initialize a connected session and persist it."""
        await self._send_initial_activity(handle, session.user)
        await self.store.set_session(session)

    async def establish(
        self,
        process_endpoint: str,
        credentials: ProcessCredentials,
        user: User | None = None,
        chat_mode: ChatMode = ChatMode.CONVERSATION,
    ) -> ConversationSession | None:
        """Establish a new chat session against a bot process.

        Provisions a conversation on the backend, opens a channel for it,
        announces the participant list to the bot and persists the record.
        Nothing is persisted unless every step succeeds.

        Args:
            process_endpoint: Messaging endpoint of the bot process.
            credentials: Bot process credentials.
            user: Participant. Defaults to the identity generator's user.
            chat_mode: Chat mode of the new session.

        Returns:
            The persisted session, or None if a later call for the returned
            conversation ID started while the backend request was in flight.

        Raises:
            ValueError: If process_endpoint is empty.
            ProvisioningError: If the backend rejects the conversation.
            TransportError: If the channel cannot connect or initialize.
        """
        if not process_endpoint:
            raise ValueError("process_endpoint must not be empty")

        user = user or self.identity.get_user()
        ticket = self._next_ticket()
        logger.info(f"Establishing {chat_mode.value} session with {process_endpoint}")

        binding = await self.backend.start_conversation(
            bot_url=process_endpoint,
            channel_service_type=self.channel_service_type,
            members=[user],
            mode=chat_mode,
            credentials=credentials,
        )
        conversation_id = binding.conversation_id

        async with self._lock_for(conversation_id):
            if not self._claim(conversation_id, ticket):
                logger.info(f"Discarding stale establish of {conversation_id}")
                return None

            handle = await self.transport.connect(
                conversation_id,
                mode=chat_mode,
                endpoint_id=binding.endpoint_id,
                user_id=user.id,
            )
            session = ConversationSession(
                conversation_id=conversation_id,
                chat_mode=chat_mode,
                user=user,
                endpoint_id=binding.endpoint_id,
                process_endpoint=process_endpoint,
                channel_handle=handle,
            )
            await self._adopt(handle, session)

        logger.info(f"Established session {conversation_id}")
        return session

    async def restart(
        self,
        existing_conversation_id: str,
        reuse_identifier: bool,
        chat_mode: ChatMode | None = None,
    ) -> ConversationSession | None:
        """Restart a stored chat session on a new channel.

        The old channel is ended before the backend rebinds the conversation
        and a new channel is opened. With ``reuse_identifier`` the existing
        conversation ID is kept and its record overwritten, otherwise a fresh
        ``<token>|<chat mode>`` ID is issued and stored as a new record.

        Args:
            existing_conversation_id: Conversation to restart.
            reuse_identifier: Whether to keep the existing conversation ID.
            chat_mode: Chat mode of the restarted session. Defaults to the mode
                encoded in the existing ID, then the stored mode.

        Returns:
            The persisted session, or None if a later call for the same
            conversation ID claimed it while this one was waiting.

        Raises:
            SessionNotFoundError: If no session is stored under the ID.
            ProvisioningError: If the backend rejects the update.
            TransportError: If the old channel cannot end or the new one
                cannot connect or initialize.
        """
        ticket = self._next_ticket()
        async with self._lock_for(existing_conversation_id):
            existing = await self.store.get_session(existing_conversation_id)
            if existing is None:
                raise SessionNotFoundError(
                    "Cannot restart unknown conversation",
                    operation="restart",
                    conversation_id=existing_conversation_id,
                )

            if not self._claim(existing_conversation_id, ticket):
                logger.info(f"Discarding stale restart of {existing_conversation_id}")
                return None

            mode = chat_mode or parse_chat_mode(existing_conversation_id) or existing.chat_mode
            if reuse_identifier and existing_conversation_id:
                conversation_id = existing_conversation_id
            else:
                conversation_id = self.identity.new_conversation_id(mode)

            logger.info(f"Restarting session {existing_conversation_id} as {conversation_id}")

            if existing.channel_handle is not None:
                await existing.channel_handle.end()

            binding = await self.backend.update_conversation(
                existing_conversation_id, conversation_id, existing.user.id
            )
            handle = await self.transport.connect(
                conversation_id,
                mode=mode,
                endpoint_id=binding.endpoint_id,
                user_id=existing.user.id,
            )

            session = ConversationSession(
                conversation_id=conversation_id,
                chat_mode=mode,
                user=existing.user,
                endpoint_id=binding.endpoint_id,
                process_endpoint=existing.process_endpoint,
                channel_handle=handle,
            )
            await self._adopt(handle, session)

        logger.info(f"Restarted session {existing_conversation_id} as {conversation_id}")
        return session

    async def export_transcript(self, conversation_id: str) -> bytes:
        """Export every activity of a conversation as JSON.

        The caller decides where the transcript goes; nothing is written
        to disk here.

        Args:
            conversation_id: Conversation to export.

        Returns:
            UTF-8 encoded JSON array of activities.

        Raises:
            SessionNotFoundError: If no session is stored under the ID.
            ProvisioningError: If the backend cannot produce the transcript.
        """
        if await self.store.get_session(conversation_id) is None:
            raise SessionNotFoundError(
                "Cannot export unknown conversation",
                operation="export_transcript",
                conversation_id=conversation_id,
            )

        activities = await self.backend.get_transcript(conversation_id)
        logger.info(f"Exported {len(activities)} activities from {conversation_id}")
        return json.dumps(activities, indent=2).encode("utf-8")

    async def connect_error_channel(self, callback: ErrorCallback | None = None) -> bool:
        """Subscribe to asynchronous transport failures.

        Args:
            callback: Coroutine function receiving each failure. Failures are
                logged if None.

        Returns:
            True once the subscription is in place.

        Raises:
            TransportError: If the error channel cannot be opened.
        """
        return await self.transport.connect_error_channel(callback or self._log_transport_error)

    async def _log_transport_error(self, error: TransportError) -> None:
        logger.error(f"Transport failure reported: {error}")

    async def get_session(self, conversation_id: str) -> ConversationSession | None:
        """Get the current record, including its live channel handle.

        Args:
            conversation_id: Conversation to look up.

        Returns:
            The stored session, or None if unknown.
        """
        return await self.store.get_session(conversation_id)

    async def send_message(self, conversation_id: str, text: str) -> str | None:
        """Send a user message through a session's current channel.

        Args:
            conversation_id: Conversation to post to.
            text: Message text.

        Returns:
            ID the host assigned to the activity, if any.

        Raises:
            SessionNotFoundError: If no session is stored under the ID.
            TransportError: If the session has no live channel or sending fails.
        """
        session = await self.store.get_session(conversation_id)
        if session is None:
            raise SessionNotFoundError(
                "Cannot send to unknown conversation",
                operation="send_message",
                conversation_id=conversation_id,
            )
        if session.channel_handle is None:
            raise TransportError(
                "Session has no live channel, restart it first",
                operation="send_message",
                conversation_id=conversation_id,
            )

        activity = Activity(
            type=ActivityTypes.message,
            channel_id=WEBCHAT_CHANNEL_ID,
            from_property=ChannelAccount(id=session.user.id, name=session.user.name),
            text=text,
        )
        return await session.channel_handle.send_activity(activity)

    async def close(self) -> None:
        """Release the error channel subscription."""
        await self.transport.close()
