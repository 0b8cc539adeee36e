from supabase import Client
from app.core.money import ZERO
from app.modules.friends.schemas import FriendAdd, FriendResponse
from app.modules.balances.service import BalanceService
from app.modules.users.service import UserService
from typing import List
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class FriendService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.users = UserService(supabase)
        self.balances = BalanceService(supabase)

    def list_friends(self, user_id: str) -> List[FriendResponse]:
        """Friends the user added, each with the current balance between them"""
        try:
            edges = self.supabase.table("friends")\
                .select("friend_id, created_at")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            if not edges.data:
                return []
            profiles = self.users.get_users_by_ids([e["friend_id"] for e in edges.data])
            balances = self.balances.get_counterparty_balances(user_id)
            friends = []
            for edge in edges.data:
                profile = profiles.get(edge["friend_id"])
                if profile is None:
                    continue
                friends.append(FriendResponse(
                    id=profile.id,
                    email=profile.email,
                    full_name=profile.full_name,
                    balance=balances.get(profile.id, ZERO),
                    created_at=edge.get("created_at"),
                ))
            return friends
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing friends for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def add_friend(self, user_id: str, friend_data: FriendAdd) -> FriendResponse:
        """Add a friend by email"""
        try:
            friend = self.users.get_user_by_email(friend_data.email)
            if friend is None:
                raise HTTPException(status_code=404, detail="User not found")
            if friend.id == user_id:
                raise HTTPException(status_code=400, detail="You cannot add yourself as a friend")

            existing = self.supabase.table("friends")\
                .select("id")\
                .eq("user_id", user_id)\
                .eq("friend_id", friend.id)\
                .limit(1)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=400, detail="Already friends with this user")

            result = self.supabase.table("friends").insert({
                "user_id": user_id,
                "friend_id": friend.id
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add friend")

            logger.info(f"User {user_id} added friend {friend.id}")
            return FriendResponse(
                id=friend.id,
                email=friend.email,
                full_name=friend.full_name,
                balance=self.balances.get_pairwise_balance(user_id, friend.id),
                created_at=result.data[0].get("created_at"),
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error adding friend for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def remove_friend(self, user_id: str, friend_id: str) -> bool:
        """Remove a friend edge; refused while money is still owed either way"""
        try:
            existing = self.supabase.table("friends")\
                .select("id")\
                .eq("user_id", user_id)\
                .eq("friend_id", friend_id)\
                .limit(1)\
                .execute()
            if not existing.data:
                raise HTTPException(status_code=404, detail="Friend not found")
            if self.balances.get_pairwise_balance(user_id, friend_id) != ZERO:
                raise HTTPException(status_code=400, detail="Settle up before removing this friend")

            result = self.supabase.table("friends")\
                .delete()\
                .eq("user_id", user_id)\
                .eq("friend_id", friend_id)\
                .execute()
            return len(result.data) > 0
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error removing friend {friend_id} for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
