from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_supabase
from app.modules.settlements.schemas import SettlementCreate, SettlementResponse
from app.modules.settlements.service import SettlementService
from app.core.dependencies import get_current_user_id, check_group_member
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/settlements", tags=["settlements"])


def get_settlement_service(supabase: Client = Depends(get_supabase)) -> SettlementService:
    return SettlementService(supabase)


@router.post("", response_model=SettlementResponse, status_code=201)
async def settle_up(
    settlement_data: SettlementCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: SettlementService = Depends(get_settlement_service),
    supabase: Client = Depends(get_supabase)
):
    """Record that you paid another user back"""
    if settlement_data.group_id:
        check_group_member(settlement_data.group_id, user_data, supabase)
    return service.settle_up(settlement_data, user_data["id"])


@router.get("", response_model=List[SettlementResponse])
async def list_settlements(
    group_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(get_current_user_id),
    service: SettlementService = Depends(get_settlement_service)
):
    """Settlements you paid or received"""
    return service.list_settlements(user_data["id"], group_id=group_id, limit=limit, offset=offset)


@router.delete("/{settlement_id}", status_code=204)
async def delete_settlement(
    settlement_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: SettlementService = Depends(get_settlement_service)
):
    """Undo a settlement you recorded"""
    service.delete_settlement(settlement_id, user_data["id"])
    return None
