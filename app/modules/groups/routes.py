from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_supabase
from app.modules.groups.schemas import (
    GroupCreate, GroupUpdate, GroupResponse, GroupSummaryResponse, GroupDetailResponse,
    GroupMemberAdd, GroupMemberResponse
)
from app.modules.groups.service import GroupService
from app.modules.expenses.schemas import ExpenseResponse
from app.modules.expenses.service import ExpenseService
from app.modules.balances.schemas import GroupBalancesResponse
from app.modules.balances.service import BalanceService
from app.core.dependencies import get_current_user_id, check_group_admin, check_group_member, get_group_member_ids
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/groups", tags=["groups"])


def get_group_service(supabase: Client = Depends(get_supabase)) -> GroupService:
    return GroupService(supabase)


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group(
    group_data: GroupCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    """Create a new group with the current user as creator"""
    return service.create_group(group_data, user_data["id"])


@router.get("", response_model=List[GroupSummaryResponse])
async def list_groups(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    """List groups the user is a member of"""
    return service.list_groups(user_data["id"], limit=limit, offset=offset)


@router.get("/{group_id}", response_model=GroupDetailResponse)
async def get_group(
    group_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    """Get group with its members (members only)"""
    check_group_member(group_id, user_data, supabase)
    return service.get_group_detail(group_id)


@router.put("/{group_id}", response_model=GroupResponse)
async def update_group(
    group_id: str,
    group_data: GroupUpdate,
    current_user: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    """Rename or describe a group (creator only)"""
    check_group_admin(group_id, current_user, supabase)
    return service.update_group(group_id, group_data)


@router.delete("/{group_id}", status_code=204)
async def delete_group(
    group_id: str,
    current_user: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    """Delete group with its expenses (creator only)"""
    check_group_admin(group_id, current_user, supabase)
    service.delete_group(group_id)
    return None


@router.post("/{group_id}/members", response_model=GroupMemberResponse, status_code=201)
async def add_member(
    group_id: str,
    member_data: GroupMemberAdd,
    current_user: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    """Add a member to the group (creator only)"""
    check_group_admin(group_id, current_user, supabase)
    return service.add_member(group_id, member_data)


@router.get("/{group_id}/members", response_model=List[GroupMemberResponse])
async def list_members(
    group_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    """List all members of a group (only if user is a member)"""
    check_group_member(group_id, user_data, supabase)
    return service.list_members(group_id)


@router.delete("/{group_id}/members/{user_id}", status_code=204)
async def remove_member(
    group_id: str,
    user_id: str,
    current_user: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    """Remove a member from the group (creator only)"""
    check_group_admin(group_id, current_user, supabase)
    service.remove_member(group_id, user_id)
    return None


@router.get("/{group_id}/expenses", response_model=List[ExpenseResponse])
async def list_group_expenses(
    group_id: str,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_supabase)
):
    """Expenses recorded in the group, newest first"""
    check_group_member(group_id, user_data, supabase)
    return ExpenseService(supabase).list_group_expenses(group_id, limit=limit, offset=offset)


@router.get("/{group_id}/balances", response_model=GroupBalancesResponse)
async def get_group_balances(
    group_id: str,
    user_data: Dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_supabase)
):
    """Each member's balance in the group and the transfers that would settle it"""
    check_group_member(group_id, user_data, supabase)
    return BalanceService(supabase).get_group_balances(group_id, get_group_member_ids(group_id, supabase))
