"""
Conversation Models - messages, conversations and their list summaries.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List
from pydantic import BaseModel, ConfigDict, Field

TITLE_MAX_LENGTH = 40
DEFAULT_TITLE = "New Chat"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def derive_title(text: str) -> str:
    """Conversation title from the first user message: 40 chars, then '...'."""
    text = text.strip()
    if len(text) > TITLE_MAX_LENGTH:
        return text[:TITLE_MAX_LENGTH] + "..."
    return text


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A single chat message. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    id: str
    role: Role
    content: str
    created_at: datetime = Field(default_factory=utc_now)


class Conversation(BaseModel):
    """An ordered, named sequence of messages."""
    id: str
    title: str = DEFAULT_TITLE
    messages: List[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def summary(self) -> "ConversationSummary":
        return ConversationSummary(
            id=self.id,
            title=self.title,
            created_at=self.created_at,
            updated_at=self.updated_at,
            message_count=len(self.messages),
        )


class ConversationSummary(BaseModel):
    """Sidebar entry for a conversation."""
    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    message_count: int = 0
