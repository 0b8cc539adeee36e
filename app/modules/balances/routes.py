from fastapi import APIRouter, Depends, HTTPException
from app.database.supabase_client import get_supabase
from app.modules.balances.schemas import BalanceSummaryResponse, PairwiseBalanceResponse
from app.modules.balances.service import BalanceService
from app.core.dependencies import get_current_user_id, check_group_member
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/balances", tags=["balances"])


def get_balance_service(supabase: Client = Depends(get_supabase)) -> BalanceService:
    return BalanceService(supabase)


@router.get("", response_model=BalanceSummaryResponse)
async def get_my_balance(
    user_data: Dict = Depends(get_current_user_id),
    service: BalanceService = Depends(get_balance_service)
):
    """Overall balance of the current user with a per-person breakdown"""
    return service.get_user_summary(user_data["id"])


@router.get("/{other_user_id}", response_model=PairwiseBalanceResponse)
async def get_balance_with_user(
    other_user_id: str,
    group_id: Optional[str] = None,
    user_data: Dict = Depends(get_current_user_id),
    service: BalanceService = Depends(get_balance_service),
    supabase: Client = Depends(get_supabase)
):
    """Balance between the current user and another user; positive means they owe you"""
    if other_user_id == user_data["id"]:
        raise HTTPException(status_code=400, detail="Cannot compute a balance with yourself")
    if group_id:
        check_group_member(group_id, user_data, supabase)
    return service.get_pairwise_response(user_data["id"], other_user_id, group_id)
