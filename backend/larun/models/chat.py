"""
Chat API Models - request/response bodies for the HTTP layer.
"""

from typing import Optional, List, Dict
from pydantic import BaseModel, Field

from .conversation import Message, ConversationSummary


class ChatRequest(BaseModel):
    """Body of POST /chat."""
    message: Optional[str] = None
    conversation_id: Optional[str] = None


class ChatResponse(BaseModel):
    """Successful POST /chat response."""
    response: str
    conversation_id: Optional[str] = None


class ErrorResponse(BaseModel):
    """Every non-2xx response body."""
    error: str


class ConversationCreate(BaseModel):
    title: Optional[str] = None


class ConversationRename(BaseModel):
    title: str = Field(..., min_length=1)


class SendRequest(BaseModel):
    """Body of POST /conversations/send."""
    message: str
    conversation_id: Optional[str] = None


class SendResponse(BaseModel):
    conversation_id: str
    message: Message
    source: str  # "remote" or "fallback"
    fallback_reason: Optional[str] = None


class ConversationGroups(BaseModel):
    """Sidebar listing bucketed by recency."""
    today: List[ConversationSummary] = Field(default_factory=list)
    yesterday: List[ConversationSummary] = Field(default_factory=list)
    older: List[ConversationSummary] = Field(default_factory=list)

    @classmethod
    def from_groups(cls, groups: Dict[str, List[ConversationSummary]]) -> "ConversationGroups":
        return cls(**groups)
