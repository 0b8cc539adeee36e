"""
Seed Demo Data Script
Creates a demo user with three friends, a shared group and a few expenses.
Needs SUPABASE_SERVICE_ROLE_KEY so auth users can be created without email confirmation.
"""

import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.config import settings
from app.database.supabase_client import SupabaseClient
from app.modules.auth.service import AuthService
from app.modules.expenses.schemas import ExpenseCreate, SplitInput
from app.modules.expenses.service import ExpenseService
from app.modules.groups.schemas import GroupCreate
from app.modules.groups.service import GroupService
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_PASSWORD = "demo-password"

DEMO_USERS = [
    {"email": "demo@example.com", "full_name": "Demo User"},
    {"email": "john@example.com", "full_name": "John Doe"},
    {"email": "jane@example.com", "full_name": "Jane Smith"},
    {"email": "mike@example.com", "full_name": "Mike Johnson"},
]


def seed_users(supabase: Client) -> dict:
    """Create (or find) auth users and their profiles; returns email -> user id"""
    logger.info("Seeding users...")
    auth_service = AuthService(supabase)
    ids = {}
    for user in DEMO_USERS:
        existing = supabase.table("users").select("id").eq("email", user["email"]).limit(1).execute()
        if existing.data:
            ids[user["email"]] = existing.data[0]["id"]
            continue
        response = supabase.auth.admin.create_user({
            "email": user["email"],
            "password": DEMO_PASSWORD,
            "email_confirm": True,
            "user_metadata": {"full_name": user["full_name"]},
        })
        auth_service.upsert_profile(response.user.id, user["email"], user["full_name"])
        ids[user["email"]] = response.user.id
        logger.info(f"  created {user['email']}")
    return ids


def seed_friends(supabase: Client, ids: dict):
    logger.info("Seeding friends...")
    demo_id = ids["demo@example.com"]
    for email, friend_id in ids.items():
        if friend_id == demo_id:
            continue
        existing = supabase.table("friends")\
            .select("id")\
            .eq("user_id", demo_id)\
            .eq("friend_id", friend_id)\
            .execute()
        if not existing.data:
            supabase.table("friends").insert({"user_id": demo_id, "friend_id": friend_id}).execute()


def seed_group_and_expenses(supabase: Client, ids: dict):
    logger.info("Seeding group and expenses...")
    demo_id = ids["demo@example.com"]
    john_id = ids["john@example.com"]
    jane_id = ids["jane@example.com"]
    mike_id = ids["mike@example.com"]

    existing = supabase.table("groups")\
        .select("id")\
        .eq("created_by", demo_id)\
        .eq("name", "Weekend Trip")\
        .execute()
    if existing.data:
        logger.info("  demo group already present, skipping")
        return

    group = GroupService(supabase).create_group(
        GroupCreate(name="Weekend Trip", description="Cabin by the lake", member_ids=[john_id, jane_id]),
        demo_id,
    )
    expenses = ExpenseService(supabase)
    expenses.create_expense(ExpenseCreate(
        description="Groceries", amount=Decimal("90.00"), category="Food", group_id=group.id,
    ), demo_id)
    expenses.create_expense(ExpenseCreate(
        description="Gas", amount=Decimal("45.50"), category="Transport", group_id=group.id,
        paid_by=john_id, split_type="exact",
        splits=[
            SplitInput(user_id=demo_id, amount=Decimal("15.50")),
            SplitInput(user_id=john_id, amount=Decimal("15.00")),
            SplitInput(user_id=jane_id, amount=Decimal("15.00")),
        ],
    ), demo_id)
    expenses.create_expense(ExpenseCreate(
        description="Movie night", amount=Decimal("24.00"), category="Entertainment",
        participant_ids=[demo_id, mike_id],
    ), demo_id)


def main():
    if not settings.supabase_service_role_key:
        logger.error("SUPABASE_SERVICE_ROLE_KEY is required to seed demo data")
        sys.exit(1)

    supabase = SupabaseClient.get_admin_client()
    ids = seed_users(supabase)
    seed_friends(supabase, ids)
    seed_group_and_expenses(supabase, ids)
    logger.info("Demo data seeded")


if __name__ == "__main__":
    main()
