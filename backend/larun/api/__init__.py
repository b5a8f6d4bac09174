"""API module."""

from .chat import router as chat_router
from .conversations import router as conversations_router
from .data import router as data_router
from .activity import router as activity_router

__all__ = ['chat_router', 'conversations_router', 'data_router', 'activity_router']
