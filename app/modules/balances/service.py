from decimal import Decimal
from supabase import Client
from app.config import settings
from app.core.money import ZERO
from app.modules.balances import ledger
from app.modules.balances.schemas import (
    BalanceSummaryResponse, CounterpartyBalance, PairwiseBalanceResponse,
    GroupBalancesResponse, MemberBalance, TransferResponse
)
from app.modules.users.service import UserService
from typing import Dict, List, NamedTuple, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class Ledger(NamedTuple):
    expenses: List[dict]
    splits: List[dict]
    settlements: List[dict]


class BalanceService:
    """Derives balances from expenses, expense_splits and settlements on every read."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _splits_for(self, expense_ids: List[str]) -> List[dict]:
        if not expense_ids:
            return []
        result = self.supabase.table("expense_splits")\
            .select("expense_id, user_id, amount")\
            .in_("expense_id", expense_ids)\
            .execute()
        return result.data or []

    def fetch_user_ledger(self, user_id: str) -> Ledger:
        """Every expense the user paid for or has a split in, plus their settlements"""
        own_splits = self.supabase.table("expense_splits")\
            .select("expense_id")\
            .eq("user_id", user_id)\
            .execute()
        paid = self.supabase.table("expenses")\
            .select("id")\
            .eq("paid_by", user_id)\
            .execute()
        expense_ids = {s["expense_id"] for s in own_splits.data or []}
        expense_ids.update(e["id"] for e in paid.data or [])
        expenses = []
        if expense_ids:
            expenses = self.supabase.table("expenses")\
                .select("id, amount, paid_by, group_id")\
                .in_("id", list(expense_ids))\
                .execute().data or []
        settlements = self.supabase.table("settlements")\
            .select("payer_id, payee_id, amount, group_id")\
            .or_(f"payer_id.eq.{user_id},payee_id.eq.{user_id}")\
            .execute().data or []
        return Ledger(expenses, self._splits_for([e["id"] for e in expenses]), settlements)

    def fetch_group_ledger(self, group_id: str) -> Ledger:
        expenses = self.supabase.table("expenses")\
            .select("id, amount, paid_by, group_id")\
            .eq("group_id", group_id)\
            .execute().data or []
        settlements = self.supabase.table("settlements")\
            .select("payer_id, payee_id, amount, group_id")\
            .eq("group_id", group_id)\
            .execute().data or []
        return Ledger(expenses, self._splits_for([e["id"] for e in expenses]), settlements)

    def get_counterparty_balances(self, user_id: str) -> Dict[str, Decimal]:
        try:
            data = self.fetch_user_ledger(user_id)
            return ledger.counterparty_balances(user_id, data.expenses, data.splits, data.settlements)
        except Exception as e:
            logger.error(f"Error computing balances for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to compute balances")

    def get_pairwise_balance(self, user_id: str, other_user_id: str, group_id: Optional[str] = None) -> Decimal:
        """Positive when other_user_id owes user_id. Restricted to one group when group_id is set."""
        if group_id:
            try:
                data = self.fetch_group_ledger(group_id)
            except Exception as e:
                logger.error(f"Error computing group balance for {group_id}: {e}")
                raise HTTPException(status_code=500, detail="Failed to compute balances")
            return ledger.pairwise_balance(user_id, other_user_id, data.expenses, data.splits, data.settlements)
        return self.get_counterparty_balances(user_id).get(other_user_id, ZERO)

    def get_pairwise_response(self, user_id: str, other_user_id: str, group_id: Optional[str] = None) -> PairwiseBalanceResponse:
        return PairwiseBalanceResponse(
            user_id=user_id,
            other_user_id=other_user_id,
            currency=settings.default_currency,
            balance=self.get_pairwise_balance(user_id, other_user_id, group_id),
            group_id=group_id,
        )

    def get_user_summary(self, user_id: str) -> BalanceSummaryResponse:
        """Overall position of a user across all friends and groups"""
        balances = self.get_counterparty_balances(user_id)
        profiles = UserService(self.supabase).get_users_by_ids(list(balances.keys()))
        counterparties = []
        for other_id, balance in sorted(balances.items(), key=lambda kv: (-abs(kv[1]), kv[0])):
            if balance == ZERO:
                continue
            profile = profiles.get(other_id)
            counterparties.append(CounterpartyBalance(
                user_id=other_id,
                full_name=profile.full_name if profile else None,
                email=profile.email if profile else None,
                balance=balance,
            ))
        owed_to_you = sum((c.balance for c in counterparties if c.balance > 0), ZERO)
        you_owe = sum((-c.balance for c in counterparties if c.balance < 0), ZERO)
        return BalanceSummaryResponse(
            user_id=user_id,
            currency=settings.default_currency,
            net_balance=owed_to_you - you_owe,
            total_owed_to_you=owed_to_you,
            total_you_owe=you_owe,
            counterparties=counterparties,
        )

    def get_group_net_balances(self, group_id: str) -> Dict[str, Decimal]:
        try:
            data = self.fetch_group_ledger(group_id)
            return ledger.net_balances(data.expenses, data.splits, data.settlements)
        except Exception as e:
            logger.error(f"Error computing group balances for {group_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to compute balances")

    def get_group_balances(self, group_id: str, member_ids: List[str]) -> GroupBalancesResponse:
        """Every member's net balance in the group and the transfers that would settle it"""
        balances = self.get_group_net_balances(group_id)
        for member_id in member_ids:
            balances.setdefault(member_id, ZERO)
        profiles = UserService(self.supabase).get_users_by_ids(list(balances.keys()))
        try:
            plan = ledger.simplify_debts(balances)
        except ValueError as e:
            # Only possible when stored splits do not add up to their expense
            logger.error(f"Group {group_id} ledger is inconsistent: {e}")
            raise HTTPException(status_code=409, detail="Group ledger is inconsistent")
        return GroupBalancesResponse(
            group_id=group_id,
            currency=settings.default_currency,
            balances=[
                MemberBalance(
                    user_id=user_id,
                    full_name=profiles[user_id].full_name if user_id in profiles else None,
                    balance=balance,
                )
                for user_id, balance in sorted(balances.items(), key=lambda kv: (-kv[1], kv[0]))
            ],
            settlement_plan=[
                TransferResponse(from_user_id=t.from_user_id, to_user_id=t.to_user_id, amount=t.amount)
                for t in plan
            ],
        )
