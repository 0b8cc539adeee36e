from datetime import datetime, timezone
from supabase import Client
from app.core.dependencies import get_group_member_ids
from app.core.money import ZERO, quantize
from app.modules.groups.schemas import (
    GroupCreate, GroupUpdate, GroupResponse, GroupSummaryResponse, GroupDetailResponse,
    GroupMemberAdd, GroupMemberResponse
)
from app.modules.balances.service import BalanceService
from app.modules.users.service import UserService
from typing import List
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class GroupService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.users = UserService(supabase)
        self.balances = BalanceService(supabase)

    def _total_expenses(self, group_id: str):
        result = self.supabase.table("expenses")\
            .select("amount")\
            .eq("group_id", group_id)\
            .execute()
        return sum((quantize(e["amount"]) for e in result.data or []), ZERO)

    def create_group(self, group_data: GroupCreate, user_id: str) -> GroupResponse:
        """Create a group; the creator is always a member"""
        try:
            member_ids = [user_id] + [m for m in dict.fromkeys(group_data.member_ids) if m != user_id]
            known = self.users.get_users_by_ids(member_ids)
            if len(known) != len(member_ids):
                raise HTTPException(status_code=400, detail="Unknown group member")

            result = self.supabase.table("groups").insert({
                "name": group_data.name,
                "description": group_data.description,
                "created_by": user_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create group")
            group = result.data[0]

            try:
                members = self.supabase.table("group_members").insert([
                    {"group_id": group["id"], "user_id": member_id}
                    for member_id in member_ids
                ]).execute()
                if not members.data:
                    raise HTTPException(status_code=500, detail="Failed to add group members")
            except Exception:
                # A group without members is unreachable through the API
                self.supabase.table("groups").delete().eq("id", group["id"]).execute()
                raise

            logger.info(f"Group {group['id']} created by {user_id} with {len(member_ids)} members")
            return GroupResponse(**group)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating group: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_group_by_id(self, group_id: str) -> GroupResponse:
        """Get group by ID"""
        try:
            result = self.supabase.table("groups")\
                .select("*")\
                .eq("id", group_id)\
                .limit(1)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Group not found")

            return GroupResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_group_detail(self, group_id: str) -> GroupDetailResponse:
        """Group with member profiles and expense total"""
        group = self.get_group_by_id(group_id)
        try:
            member_ids = get_group_member_ids(group_id, self.supabase)
            profiles = self.users.get_users_by_ids(member_ids)
            return GroupDetailResponse(
                **group.model_dump(),
                members=[profiles[m] for m in member_ids if m in profiles],
                total_expenses=self._total_expenses(group_id),
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error loading group {group_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_group(self, group_id: str, group_data: GroupUpdate) -> GroupResponse:
        """Update group"""
        try:
            update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
            if group_data.name:
                if not group_data.name.strip():
                    raise HTTPException(status_code=400, detail="Group name cannot be empty")
                update_data["name"] = group_data.name.strip()
            if group_data.description is not None:
                update_data["description"] = group_data.description

            result = self.supabase.table("groups")\
                .update(update_data)\
                .eq("id", group_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Group not found")

            return GroupResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_groups(self, user_id: str, limit: int = 20, offset: int = 0) -> List[GroupSummaryResponse]:
        """Groups the user belongs to, newest first, with totals and the user's balance in each"""
        try:
            members_result = self.supabase.table("group_members")\
                .select("group_id")\
                .eq("user_id", user_id)\
                .execute()
            group_ids = [m["group_id"] for m in members_result.data or []]
            if not group_ids:
                return []
            result = self.supabase.table("groups")\
                .select("*")\
                .in_("id", group_ids)\
                .order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            groups = []
            for group in result.data or []:
                balances = self.balances.get_group_net_balances(group["id"])
                groups.append(GroupSummaryResponse(
                    **group,
                    member_count=len(get_group_member_ids(group["id"], self.supabase)),
                    total_expenses=self._total_expenses(group["id"]),
                    your_balance=balances.get(user_id, ZERO),
                ))
            return groups
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing groups for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_group(self, group_id: str) -> bool:
        """Delete group together with its members, expenses and settlements"""
        try:
            expenses = self.supabase.table("expenses")\
                .select("id")\
                .eq("group_id", group_id)\
                .execute()
            expense_ids = [e["id"] for e in expenses.data or []]
            if expense_ids:
                self.supabase.table("expense_splits")\
                    .delete()\
                    .in_("expense_id", expense_ids)\
                    .execute()
                self.supabase.table("expenses")\
                    .delete()\
                    .eq("group_id", group_id)\
                    .execute()

            self.supabase.table("settlements")\
                .delete()\
                .eq("group_id", group_id)\
                .execute()

            self.supabase.table("group_members")\
                .delete()\
                .eq("group_id", group_id)\
                .execute()

            result = self.supabase.table("groups")\
                .delete()\
                .eq("id", group_id)\
                .execute()

            logger.info(f"Group {group_id} deleted with {len(expense_ids)} expenses")
            return len(result.data) > 0
        except Exception as e:
            logger.error(f"Error deleting group {group_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def add_member(self, group_id: str, member_data: GroupMemberAdd) -> GroupMemberResponse:
        """Add a member to the group"""
        try:
            self.users.get_user_by_id(member_data.user_id)

            if member_data.user_id in get_group_member_ids(group_id, self.supabase):
                raise HTTPException(status_code=400, detail="User already a member of this group")

            result = self.supabase.table("group_members").insert({
                "group_id": group_id,
                "user_id": member_data.user_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add member")

            return GroupMemberResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def remove_member(self, group_id: str, user_id: str) -> bool:
        """Remove a member; the creator and members with open balances stay"""
        try:
            group = self.get_group_by_id(group_id)
            if group.created_by == user_id:
                raise HTTPException(status_code=400, detail="The group creator cannot be removed")
            if user_id not in get_group_member_ids(group_id, self.supabase):
                raise HTTPException(status_code=404, detail="Member not found")
            if self.balances.get_group_net_balances(group_id).get(user_id, ZERO) != ZERO:
                raise HTTPException(status_code=400, detail="Member must settle up before leaving the group")

            result = self.supabase.table("group_members")\
                .delete()\
                .eq("group_id", group_id)\
                .eq("user_id", user_id)\
                .execute()

            return len(result.data) > 0
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_members(self, group_id: str) -> List[GroupMemberResponse]:
        """List all members of a group"""
        try:
            result = self.supabase.table("group_members")\
                .select("*")\
                .eq("group_id", group_id)\
                .execute()

            return [GroupMemberResponse(**member) for member in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
