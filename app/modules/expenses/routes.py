from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_supabase
from app.modules.expenses.schemas import ExpenseCreate, ExpenseUpdate, ExpenseResponse
from app.modules.expenses.service import ExpenseService
from app.core.dependencies import (
    get_current_user_id, check_group_member, check_expense_access, check_expense_owner
)
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/expenses", tags=["expenses"])


def get_expense_service(supabase: Client = Depends(get_supabase)) -> ExpenseService:
    return ExpenseService(supabase)


@router.post("", response_model=ExpenseResponse, status_code=201)
async def create_expense(
    expense_data: ExpenseCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: ExpenseService = Depends(get_expense_service),
    supabase: Client = Depends(get_supabase)
):
    """Record a shared expense (group members only for group expenses)"""
    if expense_data.group_id:
        check_group_member(expense_data.group_id, user_data, supabase)
    return service.create_expense(expense_data, user_data["id"])


@router.get("", response_model=List[ExpenseResponse])
async def list_expenses(
    group_id: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(get_current_user_id),
    service: ExpenseService = Depends(get_expense_service)
):
    """Expenses involving the current user, newest first"""
    return service.list_expenses(user_data["id"], group_id=group_id, limit=limit, offset=offset)


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    expense_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: ExpenseService = Depends(get_expense_service),
    supabase: Client = Depends(get_supabase)
):
    """Get expense with its splits"""
    check_expense_access(service.get_expense_row(expense_id), user_data, supabase)
    return service.get_expense(expense_id)


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: str,
    expense_data: ExpenseUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: ExpenseService = Depends(get_expense_service)
):
    """Edit an expense (creator or payer only)"""
    existing = service.get_expense_row(expense_id)
    check_expense_owner(existing, user_data)
    return service.update_expense(expense_id, expense_data, existing=existing)


@router.delete("/{expense_id}", status_code=204)
async def delete_expense(
    expense_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: ExpenseService = Depends(get_expense_service)
):
    """Delete an expense (creator or payer only)"""
    check_expense_owner(service.get_expense_row(expense_id), user_data)
    service.delete_expense(expense_id)
    return None
