# Supabase tables: groups, group_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

groups:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- image_url: text (nullable) - public URL in the group-images bucket
- invite_code: text (unique, not null) - 8 chars, see huddle.core.invite_codes
- invite_code_expires_at: timestamptz (nullable) - no expiry when null
- owner_id: uuid (foreign key to profiles.id, not null)
- created_at: timestamptz (default: now())

group_members:
- id: uuid (primary key)
- group_id: uuid (foreign key to groups.id, on delete cascade)
- user_id: uuid (foreign key to profiles.id, on delete cascade)
- role: role enum (owner | admin | member, default: 'member')
- joined_at: timestamptz (default: now())
- unique constraint on (group_id, user_id)

Exactly one owner row per group, inserted together with the group.
"""
