# Supabase table: users
# Profile rows mirror auth.users; written on registration by AuthService.upsert_profile

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, references auth.users.id)
- email: text (unique, not null)
- full_name: text (nullable) - defaults to the email local part
- avatar_url: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
