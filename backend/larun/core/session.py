"""
Session Controller - turns user input into a stored exchange.

A ``ChatSession`` holds the state of one user's chat: which conversation is
current and whether a send is in flight. Sends are serialized by the
``loading`` flag; a send issued while another is running is rejected.
"""

import asyncio
import logging
from enum import Enum
from typing import Dict, List, Optional

from ..models import Conversation, Message, Role, derive_title
from ..storage.activity_storage import ActivityLog
from ..storage.conversation_store import ConversationStore
from ..storage.interface import StorageInterface
from .errors import ConversationNotFoundError, SessionBusyError
from .gateway import CompletionGateway, CompletionResult
from .logging_config import ContextLoggerAdapter

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_APPEND_USER = "awaiting_append_user"
    AWAITING_REMOTE = "awaiting_remote"
    AWAITING_APPEND_ASSISTANT = "awaiting_append_assistant"


def error_reply(error: Exception) -> str:
    return f"Sorry, I encountered an error: {error}. Please try again."


class ChatSession:
    """
    Chat state for one user session.
    """

    def __init__(
        self,
        user_id: str,
        store: ConversationStore,
        gateway: CompletionGateway,
        activity: Optional[ActivityLog] = None,
    ):
        """
        Args:
            user_id: Owner of the session
            store: The user's conversation store (already loaded)
            gateway: Completion gateway used for replies
            activity: Optional activity log receiving one event per send
        """
        self.user_id = user_id
        self.store = store
        self.gateway = gateway
        self.activity = activity
        self.current_conversation_id: Optional[str] = None
        self.loading = False
        self.state = SessionState.IDLE
        self.last_result: Optional[CompletionResult] = None
        # Conversation the last reply was appended to; the current one may
        # have changed while the reply was pending
        self.last_conversation_id: Optional[str] = None
        self._sending_conversation_id: Optional[str] = None
        self.log = ContextLoggerAdapter(logger, {"user_id": user_id})

    @property
    def current_conversation(self) -> Optional[Conversation]:
        if self.current_conversation_id is None or self.current_conversation_id not in self.store:
            return None
        return self.store.get(self.current_conversation_id)

    @property
    def messages(self) -> List[Message]:
        conversation = self.current_conversation
        return list(conversation.messages) if conversation else []

    def select_conversation(self, conversation_id: str) -> Conversation:
        """
        Make a conversation current.

        Raises:
            ConversationNotFoundError: if the id does not resolve
        """
        conversation = self.store.get(conversation_id)
        self.current_conversation_id = conversation.id
        return conversation

    def new_conversation(self) -> None:
        """Start over; the next send creates a fresh conversation."""
        self.current_conversation_id = None

    async def delete_conversation(self, conversation_id: str) -> bool:
        """
        Delete a conversation; unknown ids are a no-op.

        Raises:
            SessionBusyError: if a send is still writing to this conversation
        """
        if self.loading and conversation_id == self._sending_conversation_id:
            raise SessionBusyError()
        deleted = await self.store.delete(conversation_id)
        if self.current_conversation_id == conversation_id:
            self.current_conversation_id = None
        return deleted

    async def rename_conversation(self, conversation_id: str, title: str) -> Conversation:
        return await self.store.rename(conversation_id, title)

    async def send(self, text: str) -> Optional[Message]:
        """
        Store ``text`` as a user message, obtain a reply and store it.

        Returns:
            The assistant message, or None if the text was blank, another
            send is still in flight, or the conversation disappeared before
            the reply could be stored
        """
        text = (text or "").strip()
        if not text:
            return None
        if self.loading:
            self.log.info("Send rejected: previous message still processing")
            return None

        self.loading = True
        try:
            self.state = SessionState.AWAITING_APPEND_USER
            conversation = self.current_conversation
            if conversation is None:
                conversation = await self.store.create(derive_title(text))
                self.current_conversation_id = conversation.id
            self._sending_conversation_id = conversation.id

            history = list(conversation.messages)
            await self.store.append(conversation.id, Role.USER, text)

            self.state = SessionState.AWAITING_REMOTE
            try:
                result = await self.gateway.complete(text, conversation.id, history)
                reply = result.text
            except Exception as e:
                # The gateway handles its own failures; this is the last resort
                self.log.error(f"Completion gateway raised: {e}", exc_info=True)
                result = None
                reply = error_reply(e)
            self.last_result = result

            self.state = SessionState.AWAITING_APPEND_ASSISTANT
            try:
                message = await self.store.append(conversation.id, Role.ASSISTANT, reply)
            except ConversationNotFoundError:
                self.log.warning(f"Conversation {conversation.id} was removed before the reply arrived, reply dropped")
                return None
            self.last_conversation_id = conversation.id

            self.log.info(
                f"Message processed in conversation {conversation.id}: "
                f"source={result.source if result else 'error'}, response_length={len(reply)} chars"
            )
            if self.activity is not None:
                await self.activity.record_event(
                    self.user_id,
                    "chat_message",
                    title=conversation.title,
                    description=text[:100],
                    metadata={
                        "conversation_id": conversation.id,
                        "source": result.source if result else "error",
                    },
                )
            return message
        finally:
            self._sending_conversation_id = None
            self.loading = False
            self.state = SessionState.IDLE


class SessionRegistry:
    """
    Owns one ChatSession per user for the lifetime of the application.
    Sessions are created and loaded from storage on first use.
    """

    def __init__(
        self,
        storage: StorageInterface,
        gateway: CompletionGateway,
        activity: Optional[ActivityLog] = None,
        conversations_filename: str = "larun_conversations.json",
    ):
        self.storage = storage
        self.gateway = gateway
        self.activity = activity
        self.conversations_filename = conversations_filename
        self._sessions: Dict[str, ChatSession] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    async def get(self, user_id: str) -> ChatSession:
        session = self._sessions.get(user_id)
        if session is not None:
            return session

        async with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                store = ConversationStore(self.storage, user_id, filename=self.conversations_filename)
                await store.load()
                session = ChatSession(user_id, store, self.gateway, self.activity)
                self._sessions[user_id] = session
                logger.info(f"Session opened for {user_id} ({len(store)} conversations)")
        return session

    def close(self, user_id: str) -> None:
        self._sessions.pop(user_id, None)

    def close_all(self) -> None:
        self._sessions.clear()
