from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from decimal import Decimal


class FriendAdd(BaseModel):
    email: EmailStr


class FriendResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    balance: Decimal = Decimal("0.00")  # positive: they owe you
    created_at: Optional[datetime] = None  # when the edge was added
