# Supabase tables: groups, group_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

groups:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- created_by: uuid (foreign key to users.id, not null) - creator, the only one who may manage the group
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

group_members:
- id: uuid (primary key)
- group_id: uuid (foreign key to groups.id, not null)
- user_id: uuid (foreign key to users.id, not null)
- created_at: timestamp (default: now())
- unique constraint on (group_id, user_id)
"""
