from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Literal
import datetime as dt
from decimal import Decimal

Category = Literal["General", "Food", "Transport", "Entertainment", "Shopping", "Bills"]
SplitType = Literal["equal", "exact", "percentage"]


class SplitInput(BaseModel):
    user_id: str
    amount: Optional[Decimal] = Field(default=None, ge=0)
    percent: Optional[Decimal] = Field(default=None, ge=0, le=100)


class ExpenseCreate(BaseModel):
    description: str = Field(min_length=1, max_length=200)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    date: Optional[dt.date] = None  # defaults to today
    category: Category = "General"
    paid_by: Optional[str] = None  # defaults to the current user
    group_id: Optional[str] = None
    split_type: SplitType = "equal"
    participant_ids: Optional[List[str]] = None  # equal split; defaults to all group members
    splits: Optional[List[SplitInput]] = None  # exact / percentage split

    @model_validator(mode="after")
    def check_split_inputs(self):
        if not self.description.strip():
            raise ValueError("Description cannot be empty")
        if self.split_type == "exact":
            if not self.splits or any(s.amount is None for s in self.splits):
                raise ValueError("Exact splits need an amount for every participant")
        if self.split_type == "percentage":
            if not self.splits or any(s.percent is None for s in self.splits):
                raise ValueError("Percentage splits need a percent for every participant")
        if self.split_type == "equal" and not self.participant_ids and not self.group_id:
            raise ValueError("Select at least one participant")
        return self


class ExpenseUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1, max_length=200)
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    date: Optional[dt.date] = None
    category: Optional[Category] = None
    paid_by: Optional[str] = None
    split_type: Optional[SplitType] = None
    participant_ids: Optional[List[str]] = None
    splits: Optional[List[SplitInput]] = None


class SplitResponse(BaseModel):
    user_id: str
    amount: Decimal


class ExpenseResponse(BaseModel):
    id: str
    description: str
    amount: Decimal
    date: dt.date
    category: str
    split_type: str = "equal"
    paid_by: str
    created_by: str
    group_id: Optional[str] = None
    splits: List[SplitResponse] = []
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True
