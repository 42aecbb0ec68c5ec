# Supabase table: announcements
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
announcements:
- id: uuid (primary key)
- group_id: uuid (foreign key to groups.id, on delete cascade)
- event_id: uuid (nullable, foreign key to events.id, on delete cascade)
  null for group-wide announcements, set for announcements on one event
- title: text (not null)
- content: text (not null)
- author_id: uuid (foreign key to profiles.id)
- created_at: timestamptz (default: now())
"""
