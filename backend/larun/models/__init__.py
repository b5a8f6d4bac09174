"""Models module."""

from .conversation import (
    Role, Message, Conversation, ConversationSummary, derive_title, DEFAULT_TITLE,
)
from .chat import (
    ChatRequest, ChatResponse, ErrorResponse, ConversationCreate, ConversationRename,
    SendRequest, SendResponse, ConversationGroups,
)

__all__ = [
    'Role', 'Message', 'Conversation', 'ConversationSummary', 'derive_title', 'DEFAULT_TITLE',
    'ChatRequest', 'ChatResponse', 'ErrorResponse', 'ConversationCreate', 'ConversationRename',
    'SendRequest', 'SendResponse', 'ConversationGroups',
]
