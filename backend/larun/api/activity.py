"""
Activity API endpoint - dashboard feed and plan tier.
"""

from fastapi import APIRouter, Depends, Query

from ..storage.activity_storage import ActivityLog
from ..utils.auth import get_current_user_id
from .deps import get_activity_log

router = APIRouter(prefix="/activity", tags=["activity"])


@router.get("")
async def get_activity(
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    activity: ActivityLog = Depends(get_activity_log),
):
    return {
        "tier": await activity.read_tier(user_id),
        "summary": await activity.summary(user_id),
        "recent": await activity.recent_activity(user_id, limit=limit),
    }
