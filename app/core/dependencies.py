"""
Core dependencies for route protection and access checking
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from supabase import Client
from typing import List
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    user_data = auth_service.get_current_user(token)
    return user_data


def get_user_group_ids(user_id: str, supabase: Client) -> List[str]:
    """Return group_ids from group_members"""
    try:
        result = supabase.table("group_members")\
            .select("group_id")\
            .eq("user_id", user_id)\
            .execute()
        ids = [g["group_id"] for g in result.data] if result.data else []
        return ids
    except Exception as e:
        logger.error(f"Error getting user group ids: {e}")
        return []


def get_friend_ids(user_id: str, supabase: Client) -> List[str]:
    """Users linked to user_id by a friend edge in either direction"""
    try:
        outgoing = supabase.table("friends")\
            .select("friend_id")\
            .eq("user_id", user_id)\
            .execute()
        incoming = supabase.table("friends")\
            .select("user_id")\
            .eq("friend_id", user_id)\
            .execute()
        ids = {f["friend_id"] for f in outgoing.data or []}
        ids.update(f["user_id"] for f in incoming.data or [])
        return list(ids)
    except Exception as e:
        logger.error(f"Error getting friend ids: {e}")
        return []


def is_group_member(group_id: str, user_id: str, supabase: Client) -> bool:
    member_result = supabase.table("group_members")\
        .select("id")\
        .eq("group_id", group_id)\
        .eq("user_id", user_id)\
        .limit(1)\
        .execute()
    return bool(member_result.data)


def _get_group(group_id: str, supabase: Client) -> dict:
    group_result = supabase.table("groups")\
        .select("id, created_by")\
        .eq("id", group_id)\
        .limit(1)\
        .execute()
    if not group_result.data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Group not found"
        )
    return group_result.data[0]


def check_group_member(group_id: str, user_data: dict, supabase: Client) -> dict:
    """Check that the group exists and the user is one of its members"""
    _get_group(group_id, supabase)
    if not is_group_member(group_id, user_data["id"], supabase):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You must be a member of this group"
        )
    return user_data


def check_group_admin(group_id: str, user_data: dict, supabase: Client) -> dict:
    """Only the creator of a group may change it"""
    group = _get_group(group_id, supabase)
    if group.get("created_by") != user_data["id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the group creator can perform this action"
        )
    return user_data


def check_expense_access(expense: dict, user_data: dict, supabase: Client) -> dict:
    """Allow payer, creator, any split participant, or a member of the expense's group"""
    user_id = user_data["id"]
    if user_id in (expense.get("paid_by"), expense.get("created_by")):
        return user_data
    split_ids = {s["user_id"] for s in expense.get("splits") or []}
    if user_id in split_ids:
        return user_data
    if expense.get("group_id") and is_group_member(expense["group_id"], user_id, supabase):
        return user_data
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You are not part of this expense"
    )


def check_expense_owner(expense: dict, user_data: dict) -> dict:
    """Only the creator or the payer may edit or delete an expense"""
    if user_data["id"] in (expense.get("paid_by"), expense.get("created_by")):
        return user_data
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Only the creator or payer can modify this expense"
    )


def user_can_access_user(current_user_id: str, target_user_id: str, supabase: Client) -> bool:
    """True if target is self, a friend in either direction, or shares a group with current user"""
    if current_user_id == target_user_id:
        return True
    if target_user_id in get_friend_ids(current_user_id, supabase):
        return True
    my_group_ids = get_user_group_ids(current_user_id, supabase)
    if not my_group_ids:
        return False
    member_result = supabase.table("group_members")\
        .select("id")\
        .eq("user_id", target_user_id)\
        .in_("group_id", my_group_ids)\
        .limit(1)\
        .execute()
    return bool(member_result.data)


def get_group_member_ids(group_id: str, supabase: Client) -> List[str]:
    result = supabase.table("group_members")\
        .select("user_id")\
        .eq("group_id", group_id)\
        .execute()
    return [m["user_id"] for m in result.data or []]
