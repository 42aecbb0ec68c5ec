# Supabase table: participants
# One row per (event, user) attendance response.

"""
participants:
- id: uuid (primary key)
- event_id: uuid (foreign key to events.id, on delete cascade)
- user_id: uuid (foreign key to profiles.id, on delete cascade)
- status: attending | not_attending | maybe
- responded_at: timestamptz (default: now())
- unique constraint on (event_id, user_id) - responding again upserts

Realtime must be enabled for this table (supabase_realtime publication)
for the live roster websocket.
"""
