# Supabase table: group_members (joined with profiles)
# Membership rows are created by the groups module (create / join by code);
# this module lists, re-roles and removes them.

"""
group_members:
- id: uuid (primary key) - the "member_id" used in member routes
- group_id: uuid (foreign key to groups.id, on delete cascade)
- user_id: uuid (foreign key to profiles.id, on delete cascade)
- role: owner | admin | member
- joined_at: timestamptz (default: now())

Listing joins each row with profiles(id, email, full_name, avatar_url)
and sorts by huddle.config.permissions_config.ROLE_ORDER, then joined_at.
"""
