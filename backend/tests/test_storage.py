"""
Unit tests for local storage and the conversation models.
"""

import pytest

from larun.models import derive_title


class TestLocalStorage:

    @pytest.mark.asyncio
    async def test_save_and_load(self, storage):
        assert await storage.save("users/a/doc.json", '{"ok": true}') is True
        assert await storage.load("users/a/doc.json") == b'{"ok": true}'
        assert await storage.exists("users/a/doc.json") is True

    @pytest.mark.asyncio
    async def test_save_replaces_without_leftovers(self, storage):
        await storage.save("doc.json", "first")
        await storage.save("doc.json", b"second")
        assert await storage.load("doc.json") == b"second"
        assert not (storage.base_dir / "doc.json.tmp").exists()

    @pytest.mark.asyncio
    async def test_missing_file(self, storage):
        assert await storage.load("missing.json") is None
        assert await storage.exists("missing.json") is False
        assert await storage.delete("missing.json") is False

    @pytest.mark.asyncio
    async def test_append(self, storage):
        await storage.append("log.jsonl", "a\n")
        await storage.append("log.jsonl", "b\n")
        assert await storage.load("log.jsonl") == b"a\nb\n"

    @pytest.mark.asyncio
    async def test_delete(self, storage):
        await storage.save("doc.json", "x")
        assert await storage.delete("doc.json") is True
        assert await storage.exists("doc.json") is False

    @pytest.mark.asyncio
    async def test_path_traversal_rejected(self, storage):
        assert await storage.save("../outside.json", "x") is False
        assert await storage.load("../../etc/passwd") is None


class TestDeriveTitle:

    def test_short_text(self):
        assert derive_title("  Kepler-11  ") == "Kepler-11"

    def test_exactly_forty_characters(self):
        text = "x" * 40
        assert derive_title(text) == text

    def test_long_text_is_truncated(self):
        assert derive_title("y" * 41) == "y" * 40 + "..."
