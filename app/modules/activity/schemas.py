from pydantic import BaseModel
from typing import Optional, List, Literal
from datetime import datetime
from decimal import Decimal

ActivityType = Literal["expense_added", "expense_edited", "settlement"]
ActivityFilter = Literal["all", "expense_added", "expense_edited", "settlement"]


class ActivityItem(BaseModel):
    id: str
    type: ActivityType
    occurred_at: datetime
    text: str
    amount: Decimal
    actor_id: str  # payer of the expense or settlement
    involved_user_ids: List[str]
    group_id: Optional[str] = None
    expense_id: Optional[str] = None
    settlement_id: Optional[str] = None
    category: Optional[str] = None
    method: Optional[str] = None
