from fastapi import APIRouter, Depends, HTTPException, status
from app.database.supabase_client import get_supabase
from app.modules.users.schemas import UserUpdate, UserResponse, UserSummary
from app.modules.users.service import UserService
from app.core.dependencies import get_current_user_id, user_can_access_user
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


@router.get("/search", response_model=List[UserSummary])
async def search_users(
    q: str = "",
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Find other users by name or email (max 10)"""
    return service.search_users(q, user_data["id"])


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service),
    supabase: Client = Depends(get_supabase)
):
    """Get user by ID (self, friends, or users sharing a group)"""
    if not user_can_access_user(user_data["id"], user_id, supabase):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User not accessible")
    return service.get_user_by_id(user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    user_data_body: UserUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Update your own profile"""
    if user_data["id"] != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only update your own profile")
    return service.update_user(user_id, user_data_body)
