"""
Storage Interface - Abstract base class for all storage implementations.
Keeps the conversation store and activity log independent of where bytes live.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StorageInterface(ABC):
    """
    Contract for durable key/path based storage. Implementations report
    failures through their return values instead of raising.
    """

    @abstractmethod
    async def save(self, path: str, content: bytes | str) -> bool:
        """
        Replace the content at ``path``.

        Args:
            path: Relative path, e.g. "users/123/larun_conversations.json"
            content: Text or binary content

        Returns:
            bool: True if the write completed
        """
        pass

    @abstractmethod
    async def load(self, path: str) -> Optional[bytes]:
        """
        Read the content at ``path``.

        Returns:
            Optional[bytes]: Content, or None if missing or unreadable
        """
        pass

    @abstractmethod
    async def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """
        Remove ``path``.

        Returns:
            bool: True if something was deleted
        """
        pass

    @abstractmethod
    async def append(self, path: str, content: str) -> bool:
        """
        Append text to ``path``, creating it if needed.

        Returns:
            bool: True if the append completed
        """
        pass
