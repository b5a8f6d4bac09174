"""
Unit tests for the activity log and tier lookup.
"""

import json

import pytest


class TestActivityLog:

    @pytest.mark.asyncio
    async def test_empty_log_placeholder(self, activity):
        events = await activity.recent_activity("user-1")
        assert len(events) == 1
        assert events[0]["title"] == "No recent activity"

    @pytest.mark.asyncio
    async def test_newest_first_with_limit(self, activity):
        for i in range(5):
            await activity.record_event("user-1", "detection", title=f"Run {i}")

        events = await activity.recent_activity("user-1", limit=3)
        assert [e["title"] for e in events] == ["Run 4", "Run 3", "Run 2"]

    @pytest.mark.asyncio
    async def test_event_fields(self, activity):
        event = await activity.record_event(
            "user-1", "vetting", title="TIC 1", description="passed",
            metadata={"score": 0.9},
        )
        assert event["type"] == "vetting"
        assert event["source"] == "Larun"
        assert event["metadata"] == {"score": 0.9}
        assert "timestamp" in event

    @pytest.mark.asyncio
    async def test_summary_counts_by_type(self, activity):
        await activity.record_event("user-1", "detection", title="a")
        await activity.record_event("user-1", "detection", title="b")
        await activity.record_event("user-1", "chat_message", title="c")

        summary = await activity.summary("user-1")
        assert summary == {"total": 3, "by_type": {"detection": 2, "chat_message": 1}}

    @pytest.mark.asyncio
    async def test_torn_line_is_skipped(self, activity, storage):
        await activity.record_event("user-1", "detection", title="ok")
        await storage.append("users/user-1/activity.jsonl", '{"type": "detec')

        summary = await activity.summary("user-1")
        assert summary["total"] == 1

    @pytest.mark.asyncio
    async def test_users_are_separate(self, activity):
        await activity.record_event("alice", "detection", title="a")
        assert (await activity.summary("bob"))["total"] == 0


class TestTier:

    @pytest.mark.asyncio
    async def test_default_tier(self, activity):
        assert await activity.read_tier("user-1") == "free"

    @pytest.mark.asyncio
    async def test_profile_tier(self, activity, storage):
        await storage.save("users/user-1/profile.json", json.dumps({"tier": "scientist"}))
        assert await activity.read_tier("user-1") == "scientist"

    @pytest.mark.asyncio
    async def test_unknown_tier(self, activity, storage):
        await storage.save("users/user-1/profile.json", json.dumps({"tier": "platinum"}))
        assert await activity.read_tier("user-1") == "free"

    @pytest.mark.asyncio
    async def test_unreadable_profile(self, activity, storage):
        await storage.save("users/user-1/profile.json", "not json")
        assert await activity.read_tier("user-1") == "free"
