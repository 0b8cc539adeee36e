# Supabase table: friends
# Directed edges: adding a friend does not create the reverse edge

"""
Expected Supabase table structure:

friends:
- id: uuid (primary key)
- user_id: uuid (foreign key to users.id, not null) - who added the friend
- friend_id: uuid (foreign key to users.id, not null)
- created_at: timestamp (default: now())
- unique constraint on (user_id, friend_id)
- check constraint user_id <> friend_id
"""
