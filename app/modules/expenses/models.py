# Supabase tables: expenses, expense_splits

"""
Expected Supabase table structure:

expenses:
- id: uuid (primary key)
- description: text (not null)
- amount: numeric(12, 2) (not null, > 0)
- date: date (not null)
- category: text (not null, default: 'General')
- split_type: text (not null, default: 'equal') - values: equal, exact, percentage
- paid_by: uuid (foreign key to users.id, not null)
- created_by: uuid (foreign key to users.id, not null)
- group_id: uuid (foreign key to groups.id, nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

expense_splits:
- id: uuid (primary key)
- expense_id: uuid (foreign key to expenses.id, on delete cascade)
- user_id: uuid (foreign key to users.id, not null)
- amount: numeric(12, 2) (not null, >= 0)
- unique constraint on (expense_id, user_id)

The splits of an expense always add up to its amount.
"""
