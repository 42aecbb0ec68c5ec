# Supabase table: events
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
events:
- id: uuid (primary key)
- group_id: uuid (foreign key to groups.id, on delete cascade)
- title: text (not null)
- description: text (nullable)
- event_date: timestamptz (not null)
- location: text (nullable)
- response_deadline: timestamptz (nullable) - responses rejected once passed
- max_participants: integer (nullable) - attending cap, no cap when null
- cost: integer (default: 0)
- status: scheduled | ongoing | completed | cancelled (default: 'scheduled')
- created_by: uuid (foreign key to profiles.id)
- created_at: timestamptz (default: now())

Deleting an event removes its participants and event_images (FK cascade).
"""
