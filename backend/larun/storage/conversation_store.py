"""
Conversation Store - the ordered, durable collection of a user's conversations.

The whole collection is written as one JSON document after every mutation:

    {"version": 1, "last_id": 1718000000123, "conversations": [...]}

Conversations are kept most-recently-created first. ``last_id`` is the
high-water mark of issued ids so ids are never reused, even after deletes
and restarts.
"""

import json
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from ..core.errors import ConversationNotFoundError, PersistenceError
from ..models import Conversation, ConversationSummary, Message, Role, DEFAULT_TITLE
from ..models.conversation import utc_now
from .interface import StorageInterface

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
BUCKET_TODAY = "today"
BUCKET_YESTERDAY = "yesterday"
BUCKET_OLDER = "older"


class ConversationStore:
    """
    Owns the conversations of one user namespace.
    Lookups are synchronous; mutations persist before they return.
    """

    def __init__(
        self,
        storage: StorageInterface,
        namespace: str,
        filename: str = "larun_conversations.json",
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            storage: Storage backend
            namespace: User id the collection belongs to
            filename: Document name inside the user's directory
            clock: Returns the current (timezone-aware) time
        """
        self.storage = storage
        self.namespace = namespace
        self.path = f"users/{namespace}/{filename}"
        self._clock = clock
        self._conversations: List[Conversation] = []
        self._last_id = 0

    async def load(self) -> None:
        """Restore the collection from storage. Unreadable data starts empty."""
        content = await self.storage.load(self.path)
        if content is None:
            self._conversations = []
            return

        try:
            document = json.loads(content.decode('utf-8'))
            # Older exports stored the bare list
            if isinstance(document, list):
                document = {"conversations": document}
            conversations = [Conversation.model_validate(c) for c in document.get("conversations", [])]
            last_id = int(document.get("last_id", 0))
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError, ValueError, TypeError, AttributeError) as e:
            logger.error(f"Failed to load conversations from {self.path}: {e}")
            self._conversations = []
            return

        self._conversations = conversations
        self._last_id = max([last_id] + [self._max_issued_id(c) for c in conversations])
        logger.debug(f"Loaded {len(conversations)} conversations for {self.namespace}")

    @staticmethod
    def _max_issued_id(conversation: Conversation) -> int:
        ids = [conversation.id] + [m.id for m in conversation.messages]
        return max((int(i) for i in ids if i.isdigit()), default=0)

    def _next_id(self) -> str:
        # Millisecond timestamps, bumped when two ids land in the same tick
        candidate = int(self._clock().timestamp() * 1000)
        self._last_id = max(candidate, self._last_id + 1)
        return str(self._last_id)

    def _to_document(self) -> str:
        document = {
            "version": FORMAT_VERSION,
            "last_id": self._last_id,
            "conversations": [c.model_dump(mode="json") for c in self._conversations],
        }
        return json.dumps(document, ensure_ascii=False, indent=2)

    async def _persist(self) -> bool:
        saved = await self.storage.save(self.path, self._to_document())
        if not saved:
            # Best effort: callers keep working from memory
            error = PersistenceError(self.path)
            logger.error(
                f"{error}, continuing with in-memory state",
                extra={"extra_fields": {"namespace": self.namespace, "error_type": type(error).__name__}},
            )
        return saved

    def _find(self, conversation_id: str) -> Optional[Conversation]:
        for conversation in self._conversations:
            if conversation.id == conversation_id:
                return conversation
        return None

    def get(self, conversation_id: str) -> Conversation:
        """
        Look up a conversation.

        Raises:
            ConversationNotFoundError: if the id does not resolve
        """
        conversation = self._find(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    def __contains__(self, conversation_id: str) -> bool:
        return self._find(conversation_id) is not None

    def __len__(self) -> int:
        return len(self._conversations)

    async def create(self, title: str = DEFAULT_TITLE) -> Conversation:
        """Create an empty conversation at the head of the collection."""
        now = self._clock()
        conversation = Conversation(
            id=self._next_id(),
            title=title or DEFAULT_TITLE,
            created_at=now,
            updated_at=now,
        )
        self._conversations.insert(0, conversation)
        await self._persist()
        logger.info(f"Created conversation {conversation.id} for {self.namespace}")
        return conversation

    async def append(self, conversation_id: str, role: Role | str, content: str) -> Message:
        """
        Append a message to a conversation.

        Raises:
            ConversationNotFoundError: if the id does not resolve; nothing changes
        """
        conversation = self.get(conversation_id)

        now = self._clock()
        if conversation.messages and now < conversation.messages[-1].created_at:
            # Clock went backwards; keep the sequence ordered
            now = conversation.messages[-1].created_at

        message = Message(id=self._next_id(), role=Role(role), content=content, created_at=now)
        conversation.messages.append(message)
        conversation.updated_at = now
        await self._persist()
        return message

    async def rename(self, conversation_id: str, title: str) -> Conversation:
        conversation = self.get(conversation_id)
        conversation.title = title
        await self._persist()
        return conversation

    async def delete(self, conversation_id: str) -> bool:
        """
        Remove a conversation. Deleting an unknown id is a no-op.

        Returns:
            bool: True if a conversation was removed
        """
        conversation = self._find(conversation_id)
        if conversation is None:
            return False
        self._conversations.remove(conversation)
        await self._persist()
        logger.info(f"Deleted conversation {conversation_id} for {self.namespace}")
        return True

    def list(self) -> List[ConversationSummary]:
        """Summaries in stored order (most recently created first)."""
        return [c.summary() for c in self._conversations]

    def list_grouped(self, now: Optional[datetime] = None) -> Dict[str, List[ConversationSummary]]:
        """
        Bucket summaries by the calendar date of ``updated_at``.

        A conversation is "today" if that date equals the current date,
        "yesterday" if it equals the day before, "older" otherwise. Dates are
        compared in the timezone of ``now``.
        """
        now = now or self._clock()
        today = now.date()
        yesterday = today - timedelta(days=1)

        groups: Dict[str, List[ConversationSummary]] = {
            BUCKET_TODAY: [],
            BUCKET_YESTERDAY: [],
            BUCKET_OLDER: [],
        }
        for conversation in self._conversations:
            updated = conversation.updated_at
            if now.tzinfo is not None and updated.tzinfo is not None:
                updated = updated.astimezone(now.tzinfo)
            updated_date = updated.date()

            if updated_date == today:
                bucket = BUCKET_TODAY
            elif updated_date == yesterday:
                bucket = BUCKET_YESTERDAY
            else:
                bucket = BUCKET_OLDER
            groups[bucket].append(conversation.summary())
        return groups
