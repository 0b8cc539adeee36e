from datetime import datetime, timezone
from supabase import Client
from app.modules.users.schemas import UserUpdate, UserResponse, UserSummary
from typing import Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_user_by_id(self, user_id: str) -> UserResponse:
        """Get user profile by ID"""
        try:
            result = self.supabase.table("users")\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            return UserResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_by_email(self, email: str) -> Optional[UserResponse]:
        """Get user profile by email (case-insensitive)"""
        try:
            result = self.supabase.table("users")\
                .select("*")\
                .ilike("email", email.strip())\
                .limit(1)\
                .execute()

            if not result.data:
                return None

            return UserResponse(**result.data[0])
        except Exception as e:
            logger.error(f"Error looking up user by email: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_users_by_ids(self, user_ids: List[str]) -> Dict[str, UserSummary]:
        """Profiles keyed by id; unknown ids are simply absent"""
        if not user_ids:
            return {}
        try:
            result = self.supabase.table("users")\
                .select("id, email, full_name")\
                .in_("id", list(set(user_ids)))\
                .execute()
            return {u["id"]: UserSummary(**u) for u in result.data or []}
        except Exception as e:
            logger.error(f"Error fetching users: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_user(self, user_id: str, user_data: UserUpdate) -> UserResponse:
        """Update user profile"""
        try:
            update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
            if user_data.full_name is not None:
                if not user_data.full_name.strip():
                    raise HTTPException(status_code=400, detail="Full name cannot be empty")
                update_data["full_name"] = user_data.full_name.strip()
            if user_data.avatar_url is not None:
                update_data["avatar_url"] = user_data.avatar_url

            result = self.supabase.table("users")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            return UserResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def search_users(self, term: str, current_user_id: str) -> List[UserSummary]:
        """Case-insensitive match on name or email, excluding the caller"""
        term = (term or "").strip()
        if not term:
            return []
        # PostgREST or-filter syntax reserves these characters
        term = "".join(ch for ch in term if ch not in ",()")
        try:
            result = self.supabase.table("users")\
                .select("id, email, full_name")\
                .or_(f"full_name.ilike.%{term}%,email.ilike.%{term}%")\
                .neq("id", current_user_id)\
                .limit(SEARCH_LIMIT)\
                .execute()
            return [UserSummary(**u) for u in result.data or []]
        except Exception as e:
            logger.error(f"Error searching users: {e}")
            raise HTTPException(status_code=500, detail=str(e))
