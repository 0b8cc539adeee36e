from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.friends.schemas import FriendAdd, FriendResponse
from app.modules.friends.service import FriendService
from app.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/friends", tags=["friends"])


def get_friend_service(supabase: Client = Depends(get_supabase)) -> FriendService:
    return FriendService(supabase)


@router.get("", response_model=List[FriendResponse])
async def list_friends(
    user_data: Dict = Depends(get_current_user_id),
    service: FriendService = Depends(get_friend_service)
):
    """List your friends with the balance between you"""
    return service.list_friends(user_data["id"])


@router.post("", response_model=FriendResponse, status_code=201)
async def add_friend(
    friend_data: FriendAdd,
    user_data: Dict = Depends(get_current_user_id),
    service: FriendService = Depends(get_friend_service)
):
    """Add a registered user as a friend by email"""
    return service.add_friend(user_data["id"], friend_data)


@router.delete("/{friend_id}", status_code=204)
async def remove_friend(
    friend_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: FriendService = Depends(get_friend_service)
):
    """Remove a friend (only once settled up)"""
    service.remove_friend(user_data["id"], friend_id)
    return None
