from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_supabase
from app.modules.activity.schemas import ActivityItem, ActivityFilter
from app.modules.activity.service import ActivityService
from app.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/activity", tags=["activity"])


def get_activity_service(supabase: Client = Depends(get_supabase)) -> ActivityService:
    return ActivityService(supabase)


@router.get("", response_model=List[ActivityItem])
async def get_activity(
    type: ActivityFilter = "all",
    friend_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    user_data: Dict = Depends(get_current_user_id),
    service: ActivityService = Depends(get_activity_service)
):
    """Recent expenses, edits and settlements, optionally filtered by type or friend"""
    return service.get_feed(user_data["id"], activity_type=type, friend_id=friend_id, limit=limit)
