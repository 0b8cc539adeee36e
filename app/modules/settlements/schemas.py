from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime
from decimal import Decimal

SettlementMethod = Literal["cash", "bank_transfer", "card", "other"]


class SettlementCreate(BaseModel):
    payee_id: str
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)  # defaults to the amount owed
    method: SettlementMethod = "cash"
    group_id: Optional[str] = None
    note: Optional[str] = Field(default=None, max_length=500)


class SettlementResponse(BaseModel):
    id: str
    payer_id: str
    payee_id: str
    amount: Decimal
    method: str
    group_id: Optional[str] = None
    note: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
