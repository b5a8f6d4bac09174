"""Storage module - provides interface and implementations for data persistence."""

from .interface import StorageInterface
from .local_storage import LocalStorage
from .conversation_store import ConversationStore
from .activity_storage import ActivityLog

__all__ = ['StorageInterface', 'LocalStorage', 'ConversationStore', 'ActivityLog']
