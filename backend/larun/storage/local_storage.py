"""
Local Filesystem Storage Implementation.
All data lives under one base directory on the server.
"""

import logging
import os
import aiofiles
from pathlib import Path
from typing import Optional
from .interface import StorageInterface

logger = logging.getLogger(__name__)


class LocalStorage(StorageInterface):
    """
    Local filesystem storage implementation.
    ``save`` writes to a temporary sibling and renames it into place so a
    crash mid-write never leaves a truncated document behind.
    """

    def __init__(self, base_dir: str = "./data"):
        """
        Initialize local storage with a base directory.

        Args:
            base_dir: Base directory for all stored files
        """
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _get_full_path(self, path: str) -> Path:
        """Resolve a relative path, refusing anything outside base_dir."""
        full_path = (self.base_dir / path).resolve()
        if full_path != self.base_dir and self.base_dir not in full_path.parents:
            raise ValueError(f"Invalid path: {path} - path traversal detected")
        return full_path

    async def save(self, path: str, content: bytes | str) -> bool:
        try:
            full_path = self._get_full_path(path)
            full_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = full_path.with_name(full_path.name + ".tmp")

            if isinstance(content, str):
                async with aiofiles.open(tmp_path, 'w', encoding='utf-8') as f:
                    await f.write(content)
            else:
                async with aiofiles.open(tmp_path, 'wb') as f:
                    await f.write(content)

            os.replace(tmp_path, full_path)
            return True
        except (OSError, ValueError) as e:
            logger.error(f"Error saving file {path}: {e}")
            return False

    async def load(self, path: str) -> Optional[bytes]:
        try:
            full_path = self._get_full_path(path)
            if not full_path.exists():
                return None
            async with aiofiles.open(full_path, 'rb') as f:
                return await f.read()
        except (OSError, ValueError) as e:
            logger.error(f"Error loading file {path}: {e}")
            return None

    async def exists(self, path: str) -> bool:
        try:
            return self._get_full_path(path).exists()
        except ValueError:
            return False

    async def delete(self, path: str) -> bool:
        try:
            full_path = self._get_full_path(path)
            if full_path.exists():
                full_path.unlink()
                return True
            return False
        except (OSError, ValueError) as e:
            logger.error(f"Error deleting file {path}: {e}")
            return False

    async def append(self, path: str, content: str) -> bool:
        try:
            full_path = self._get_full_path(path)
            full_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(full_path, 'a', encoding='utf-8') as f:
                await f.write(content)
            return True
        except (OSError, ValueError) as e:
            logger.error(f"Error appending to file {path}: {e}")
            return False
