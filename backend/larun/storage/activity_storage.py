"""
Activity Storage - per-user activity log and plan tier lookup.

Events are appended as JSON lines to ``users/<id>/activity.jsonl``. The tier
is read from ``users/<id>/profile.json``, which is written by the account
service; users without a profile are on the free tier.
"""

import json
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .interface import StorageInterface

logger = logging.getLogger(__name__)

TIERS = ("free", "researcher", "scientist", "enterprise")
DEFAULT_TIER = "free"


class ActivityLog:
    """
    Records user activity (analyses, chat messages, ...) and reads plan tiers.
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def _activity_path(self, user_id: str) -> str:
        return f"users/{user_id}/activity.jsonl"

    def _profile_path(self, user_id: str) -> str:
        return f"users/{user_id}/profile.json"

    async def record_event(
        self,
        user_id: str,
        activity_type: str,
        title: str,
        description: str = "",
        metadata: Optional[Dict[str, Any]] = None,
        source: str = "Larun",
    ) -> Dict[str, Any]:
        """
        Append an activity event.

        Args:
            user_id: Owner of the event
            activity_type: e.g. "chat_message", "detection", "vetting"
            title: Short headline shown in the dashboard
            description: One-line detail
            metadata: Free-form JSON-serializable payload
            source: Component that produced the event

        Returns:
            The stored event (returned even if the write failed)
        """
        event = {
            "type": activity_type,
            "title": title,
            "description": description,
            "source": source,
            "metadata": metadata or {},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        line = json.dumps(event, ensure_ascii=False) + "\n"
        if not await self.storage.append(self._activity_path(user_id), line):
            logger.warning(f"Failed to record {activity_type} activity for {user_id}")
        return event

    async def _read_events(self, user_id: str) -> List[Dict[str, Any]]:
        content = await self.storage.load(self._activity_path(user_id))
        if not content:
            return []

        events = []
        for line in content.decode('utf-8').splitlines():
            if not line.strip():
                continue
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError:
                # A torn final line from an interrupted append
                continue
        return events

    async def recent_activity(self, user_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Newest events first; a single placeholder entry when there are none."""
        events = await self._read_events(user_id)
        if not events:
            return [{
                "type": "info",
                "title": "No recent activity",
                "description": "Run an analysis to see activity here",
                "source": "System",
                "metadata": {},
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }]
        return list(reversed(events))[:limit]

    async def summary(self, user_id: str) -> Dict[str, Any]:
        """Event counts for the dashboard."""
        events = await self._read_events(user_id)
        return {
            "total": len(events),
            "by_type": dict(Counter(event.get("type", "unknown") for event in events)),
        }

    async def read_tier(self, user_id: str) -> str:
        """Return the user's plan tier, defaulting to "free"."""
        content = await self.storage.load(self._profile_path(user_id))
        if not content:
            return DEFAULT_TIER
        try:
            profile = json.loads(content.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable profile for {user_id}: {e}")
            return DEFAULT_TIER

        tier = profile.get("tier") if isinstance(profile, dict) else None
        return tier if tier in TIERS else DEFAULT_TIER
