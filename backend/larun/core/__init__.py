"""Core module - response generation, caching and chat session logic."""

from .cache import TTLCache, make_key
from .errors import (
    LarunError, ConversationNotFoundError, UpstreamUnavailableError,
    SessionBusyError, PersistenceError,
)
from .gateway import CompletionGateway, CompletionResult, RemoteSuccess, FallbackUsed

__all__ = [
    'TTLCache', 'make_key',
    'LarunError', 'ConversationNotFoundError', 'UpstreamUnavailableError',
    'SessionBusyError', 'PersistenceError',
    'CompletionGateway', 'CompletionResult', 'RemoteSuccess', 'FallbackUsed',
]
