import datetime as dt
from collections import defaultdict
from decimal import Decimal
from supabase import Client
from app.config import settings
from app.core import money
from app.core.dependencies import get_group_member_ids
from app.modules.expenses.schemas import ExpenseCreate, ExpenseUpdate, ExpenseResponse, SplitInput
from typing import Dict, List, Optional, Tuple
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def compute_splits(
    amount: Decimal,
    split_type: str,
    participant_ids: Optional[List[str]] = None,
    splits: Optional[List[SplitInput]] = None,
) -> List[Tuple[str, Decimal]]:
    """Turn split inputs into per-user amounts that add up exactly to amount. Raises 400 on bad input."""
    try:
        if split_type == "equal":
            return money.split_equally(amount, participant_ids or [])
        if split_type == "exact":
            return money.validate_custom_splits(
                amount,
                {s.user_id: s.amount for s in _unique_splits(splits)},
                tolerance=settings.split_tolerance,
            )
        if split_type == "percentage":
            return money.split_by_percentage(amount, {s.user_id: s.percent for s in _unique_splits(splits)})
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    raise HTTPException(status_code=400, detail=f"Unknown split type: {split_type}")


def _unique_splits(splits: Optional[List[SplitInput]]) -> List[SplitInput]:
    splits = splits or []
    if len({s.user_id for s in splits}) != len(splits):
        raise ValueError("A participant appears more than once in the split")
    return splits


class ExpenseService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _attach_splits(self, expenses: List[dict]) -> List[ExpenseResponse]:
        if not expenses:
            return []
        result = self.supabase.table("expense_splits")\
            .select("expense_id, user_id, amount")\
            .in_("expense_id", [e["id"] for e in expenses])\
            .execute()
        by_expense: Dict[str, List[dict]] = defaultdict(list)
        for split in result.data or []:
            by_expense[split["expense_id"]].append(
                {"user_id": split["user_id"], "amount": money.quantize(split["amount"])}
            )
        return [
            ExpenseResponse(**{**e, "amount": money.quantize(e["amount"]), "splits": by_expense.get(e["id"], [])})
            for e in expenses
        ]

    def _check_group_participants(self, group_id: str, user_ids: List[str]) -> List[str]:
        members = get_group_member_ids(group_id, self.supabase)
        outsiders = [u for u in user_ids if u not in members]
        if outsiders:
            raise HTTPException(status_code=400, detail="Payer and participants must be members of the group")
        return members

    def _check_users_exist(self, user_ids: List[str]):
        ids = list(set(user_ids))
        result = self.supabase.table("users").select("id").in_("id", ids).execute()
        found = {u["id"] for u in result.data or []}
        if len(found) != len(ids):
            raise HTTPException(status_code=400, detail="Unknown participant")

    def _insert_splits(self, expense_id: str, splits: List[Tuple[str, Decimal]]) -> List[dict]:
        result = self.supabase.table("expense_splits").insert([
            {"expense_id": expense_id, "user_id": user_id, "amount": str(amount)}
            for user_id, amount in splits
        ]).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to save expense splits")
        return result.data

    def _replace_splits(self, expense_id: str, splits: List[Tuple[str, Decimal]]):
        """Insert the new splits before dropping the old ones; a failure leaves the old set in place"""
        old = self.supabase.table("expense_splits")\
            .select("id")\
            .eq("expense_id", expense_id)\
            .execute()
        old_ids = [s["id"] for s in old.data or []]
        inserted = self._insert_splits(expense_id, splits)
        if not old_ids:
            return
        try:
            self.supabase.table("expense_splits")\
                .delete()\
                .in_("id", old_ids)\
                .execute()
        except Exception:
            self.supabase.table("expense_splits")\
                .delete()\
                .in_("id", [s["id"] for s in inserted])\
                .execute()
            raise

    def create_expense(self, expense_data: ExpenseCreate, user_id: str) -> ExpenseResponse:
        """Create an expense and its splits"""
        try:
            paid_by = expense_data.paid_by or user_id
            participant_ids = expense_data.participant_ids
            if expense_data.group_id:
                members = self._check_group_participants(
                    expense_data.group_id,
                    [paid_by] + (participant_ids or []) + [s.user_id for s in expense_data.splits or []],
                )
                if expense_data.split_type == "equal" and not participant_ids:
                    participant_ids = members
            splits = compute_splits(expense_data.amount, expense_data.split_type, participant_ids, expense_data.splits)
            involved = {paid_by} | {u for u, _ in splits}
            if user_id not in involved and not expense_data.group_id:
                raise HTTPException(status_code=400, detail="You must be the payer or a participant")
            self._check_users_exist(list(involved))

            result = self.supabase.table("expenses").insert({
                "description": expense_data.description.strip(),
                "amount": str(money.quantize(expense_data.amount)),
                "date": (expense_data.date or dt.date.today()).isoformat(),
                "category": expense_data.category,
                "split_type": expense_data.split_type,
                "paid_by": paid_by,
                "created_by": user_id,
                "group_id": expense_data.group_id,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create expense")
            expense = result.data[0]

            try:
                self._insert_splits(expense["id"], splits)
            except Exception:
                # No transactions over PostgREST; drop the orphaned expense row
                self.supabase.table("expenses").delete().eq("id", expense["id"]).execute()
                raise

            logger.info(f"Expense {expense['id']} created by {user_id} for {expense['amount']}")
            return self._attach_splits([expense])[0]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating expense: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_expense_row(self, expense_id: str) -> dict:
        """Raw expense row with its splits, for access checks"""
        try:
            result = self.supabase.table("expenses")\
                .select("*")\
                .eq("id", expense_id)\
                .limit(1)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Expense not found")
            expense = result.data[0]
            splits = self.supabase.table("expense_splits")\
                .select("user_id, amount")\
                .eq("expense_id", expense_id)\
                .execute()
            expense["splits"] = splits.data or []
            return expense
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching expense {expense_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_expense(self, expense_id: str) -> ExpenseResponse:
        row = self.get_expense_row(expense_id)
        row.pop("splits", None)
        return self._attach_splits([row])[0]

    def list_expenses(
        self,
        user_id: str,
        group_id: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> List[ExpenseResponse]:
        """Expenses the user paid, created or has a split in, newest first"""
        try:
            own_splits = self.supabase.table("expense_splits")\
                .select("expense_id")\
                .eq("user_id", user_id)\
                .execute()
            expense_ids = {s["expense_id"] for s in own_splits.data or []}
            involved = self.supabase.table("expenses")\
                .select("id")\
                .or_(f"paid_by.eq.{user_id},created_by.eq.{user_id}")\
                .execute()
            expense_ids.update(e["id"] for e in involved.data or [])
            if not expense_ids:
                return []
            query = self.supabase.table("expenses").select("*").in_("id", list(expense_ids))
            if group_id:
                query = query.eq("group_id", group_id)
            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return self._attach_splits(result.data or [])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing expenses for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_group_expenses(self, group_id: str, limit: int = 50, offset: int = 0) -> List[ExpenseResponse]:
        try:
            result = self.supabase.table("expenses")\
                .select("*")\
                .eq("group_id", group_id)\
                .order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return self._attach_splits(result.data or [])
        except Exception as e:
            logger.error(f"Error listing expenses for group {group_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_expense(self, expense_id: str, expense_data: ExpenseUpdate, existing: Optional[dict] = None) -> ExpenseResponse:
        """Partial update; splits are recomputed when the amount, payer or split inputs change"""
        try:
            if existing is None:
                existing = self.get_expense_row(expense_id)
            update_data = {"updated_at": dt.datetime.now(dt.timezone.utc).isoformat()}
            if expense_data.description is not None:
                if not expense_data.description.strip():
                    raise HTTPException(status_code=400, detail="Description cannot be empty")
                update_data["description"] = expense_data.description.strip()
            if expense_data.date is not None:
                update_data["date"] = expense_data.date.isoformat()
            if expense_data.category is not None:
                update_data["category"] = expense_data.category

            amount = money.quantize(expense_data.amount if expense_data.amount is not None else existing["amount"])
            split_type = expense_data.split_type or existing.get("split_type") or "equal"
            paid_by = expense_data.paid_by or existing["paid_by"]
            resplit = any(v is not None for v in (
                expense_data.amount, expense_data.split_type, expense_data.paid_by,
                expense_data.participant_ids, expense_data.splits,
            ))

            new_splits = None
            if resplit:
                participant_ids = expense_data.participant_ids
                split_inputs = expense_data.splits
                if split_type == "equal" and not participant_ids:
                    participant_ids = [s["user_id"] for s in existing.get("splits") or []]
                if split_type != "equal" and not split_inputs:
                    if split_type == "exact" and not participant_ids \
                            and amount == money.quantize(existing["amount"]) \
                            and existing.get("split_type") == "exact":
                        split_inputs = [SplitInput(user_id=s["user_id"], amount=s["amount"])
                                        for s in existing.get("splits") or []]
                    else:
                        raise HTTPException(status_code=400, detail=f"Provide splits for a {split_type} split")
                new_splits = compute_splits(amount, split_type, participant_ids, split_inputs)
                involved = [paid_by] + [u for u, _ in new_splits]
                if existing.get("group_id"):
                    self._check_group_participants(existing["group_id"], involved)
                self._check_users_exist(involved)
                update_data.update({
                    "amount": str(amount),
                    "split_type": split_type,
                    "paid_by": paid_by,
                })

            result = self.supabase.table("expenses")\
                .update(update_data)\
                .eq("id", expense_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Expense not found")

            if new_splits is not None:
                try:
                    self._replace_splits(expense_id, new_splits)
                except Exception:
                    # Old splits are still stored; put back the fields they add up against
                    self.supabase.table("expenses")\
                        .update({key: existing.get(key) for key in update_data})\
                        .eq("id", expense_id)\
                        .execute()
                    raise

            logger.info(f"Expense {expense_id} updated")
            return self._attach_splits([result.data[0]])[0]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating expense {expense_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_expense(self, expense_id: str) -> bool:
        """Delete expense and its splits"""
        try:
            self.supabase.table("expense_splits")\
                .delete()\
                .eq("expense_id", expense_id)\
                .execute()
            result = self.supabase.table("expenses")\
                .delete()\
                .eq("id", expense_id)\
                .execute()
            logger.info(f"Expense {expense_id} deleted")
            return len(result.data) > 0
        except Exception as e:
            logger.error(f"Error deleting expense {expense_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
