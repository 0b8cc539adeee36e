from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal


class CounterpartyBalance(BaseModel):
    user_id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    balance: Decimal  # positive: they owe you


class BalanceSummaryResponse(BaseModel):
    user_id: str
    currency: str
    net_balance: Decimal
    total_owed_to_you: Decimal
    total_you_owe: Decimal
    counterparties: List[CounterpartyBalance]


class PairwiseBalanceResponse(BaseModel):
    user_id: str
    other_user_id: str
    currency: str
    balance: Decimal  # positive: other user owes you
    group_id: Optional[str] = None


class TransferResponse(BaseModel):
    from_user_id: str
    to_user_id: str
    amount: Decimal


class MemberBalance(BaseModel):
    user_id: str
    full_name: Optional[str] = None
    balance: Decimal


class GroupBalancesResponse(BaseModel):
    group_id: str
    currency: str
    balances: List[MemberBalance]
    settlement_plan: List[TransferResponse]
