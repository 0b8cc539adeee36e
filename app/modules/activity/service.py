from datetime import datetime, timezone
from supabase import Client
from app.modules.activity.schemas import ActivityItem
from app.modules.expenses.schemas import ExpenseResponse
from app.modules.expenses.service import ExpenseService
from app.modules.settlements.schemas import SettlementResponse
from app.modules.settlements.service import SettlementService
from app.modules.users.service import UserService
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

# Upper bound on source rows scanned per feed request
FEED_SCAN_LIMIT = 500

METHOD_LABELS = {
    "cash": "cash",
    "bank_transfer": "bank transfer",
    "card": "card",
    "other": "other",
}


def _money(amount) -> str:
    return f"${amount:.2f}"


def _as_utc(value: datetime) -> datetime:
    """Timestamps stored without a zone are read as UTC so the feed sorts on one clock"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ActivityService:
    """Builds the activity feed from expenses and settlements; nothing is stored separately."""

    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.expenses = ExpenseService(supabase)
        self.settlements = SettlementService(supabase)
        self.users = UserService(supabase)

    def _name(self, user_id: str, current_user_id: str, names: Dict[str, str]) -> str:
        if user_id == current_user_id:
            return "You"
        return names.get(user_id) or "Someone"

    def _expense_items(self, expense: ExpenseResponse, user_id: str, names: Dict[str, str]) -> List[ActivityItem]:
        involved = list(dict.fromkeys([expense.paid_by] + [s.user_id for s in expense.splits]))
        common = dict(
            amount=expense.amount,
            actor_id=expense.paid_by,
            involved_user_ids=involved,
            group_id=expense.group_id,
            expense_id=expense.id,
            category=expense.category,
        )
        created = expense.created_at or datetime.combine(expense.date, datetime.min.time(), tzinfo=timezone.utc)
        items = [ActivityItem(
            id=f"expense_added:{expense.id}",
            type="expense_added",
            occurred_at=_as_utc(created),
            text=f"{self._name(expense.paid_by, user_id, names)} paid {_money(expense.amount)} for {expense.description}",
            **common,
        )]
        if expense.updated_at:
            items.append(ActivityItem(
                id=f"expense_edited:{expense.id}",
                type="expense_edited",
                occurred_at=_as_utc(expense.updated_at),
                text=f"{expense.description} was updated to {_money(expense.amount)}",
                **common,
            ))
        return items

    def _settlement_item(self, settlement: SettlementResponse, user_id: str, names: Dict[str, str]) -> ActivityItem:
        payer = self._name(settlement.payer_id, user_id, names)
        payee = self._name(settlement.payee_id, user_id, names)
        method = METHOD_LABELS.get(settlement.method, settlement.method)
        return ActivityItem(
            id=f"settlement:{settlement.id}",
            type="settlement",
            occurred_at=_as_utc(settlement.created_at or datetime.now(timezone.utc)),
            text=f"{payer} settled up {_money(settlement.amount)} with {payee} via {method}",
            amount=settlement.amount,
            actor_id=settlement.payer_id,
            involved_user_ids=[settlement.payer_id, settlement.payee_id],
            group_id=settlement.group_id,
            settlement_id=settlement.id,
            method=settlement.method,
        )

    def get_feed(
        self,
        user_id: str,
        activity_type: str = "all",
        friend_id: Optional[str] = None,
        limit: int = 50,
    ) -> List[ActivityItem]:
        """Newest-first feed of what happened in expenses and settlements involving the user"""
        expenses = []
        settlements = []
        if activity_type in ("all", "expense_added", "expense_edited"):
            expenses = self.expenses.list_expenses(user_id, limit=FEED_SCAN_LIMIT)
        if activity_type in ("all", "settlement"):
            settlements = self.settlements.list_settlements(user_id, limit=FEED_SCAN_LIMIT)

        user_ids = {e.paid_by for e in expenses}
        user_ids.update(s.payer_id for s in settlements)
        user_ids.update(s.payee_id for s in settlements)
        names = {
            uid: (profile.full_name or profile.email)
            for uid, profile in self.users.get_users_by_ids(list(user_ids)).items()
        }

        items: List[ActivityItem] = []
        for expense in expenses:
            items.extend(self._expense_items(expense, user_id, names))
        items.extend(self._settlement_item(s, user_id, names) for s in settlements)

        if activity_type != "all":
            items = [i for i in items if i.type == activity_type]
        if friend_id:
            items = [i for i in items if friend_id in i.involved_user_ids]
        items.sort(key=lambda i: i.occurred_at, reverse=True)
        logger.debug(f"Activity feed for {user_id}: {len(items)} items")
        return items[:limit]
