# Supabase table: push_subscriptions
# One row per browser push endpoint; a user may have several devices.

"""
push_subscriptions:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, on delete cascade)
- endpoint: text (unique) - subscribe upserts on this column
- p256dh: text - client public key
- auth: text - client auth secret
- created_at: timestamptz (default: now())

Subscriptions whose push service answers 404 or 410 are deleted by the
notification fan-out.
"""
