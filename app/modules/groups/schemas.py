from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from app.modules.users.schemas import UserSummary


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    member_ids: List[str] = Field(min_length=1)  # the creator is always added

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Group name cannot be empty")
        return v.strip()


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None


class GroupResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupSummaryResponse(GroupResponse):
    member_count: int
    total_expenses: Decimal
    your_balance: Decimal  # positive: the group owes you


class GroupDetailResponse(GroupResponse):
    members: List[UserSummary]
    total_expenses: Decimal


class GroupMemberAdd(BaseModel):
    user_id: str


class GroupMemberResponse(BaseModel):
    id: str
    group_id: str
    user_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
