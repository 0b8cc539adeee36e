# Supabase table: settlements
# A settlement is a payment from payer to payee that reduces what payer owes payee

"""
Expected Supabase table structure:

settlements:
- id: uuid (primary key)
- payer_id: uuid (foreign key to users.id, not null)
- payee_id: uuid (foreign key to users.id, not null)
- amount: numeric(12, 2) (not null, > 0)
- method: text (not null, default: 'cash') - values: cash, bank_transfer, card, other
- group_id: uuid (foreign key to groups.id, nullable)
- note: text (nullable)
- created_by: uuid (foreign key to users.id, not null)
- created_at: timestamp (default: now())
- check constraint payer_id <> payee_id
"""
