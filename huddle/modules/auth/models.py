# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - OAuth / magic-link sign-in
# - Session management and JWT validation

"""
Supabase Auth provides:
- auth.exchange_code_for_session() - Finish OAuth / email-link sign-in
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

On first sign-in the callback creates a row in `profiles`
(see huddle/modules/profiles/models.py) from the provider metadata
(`name`/`full_name`, `picture`/`avatar_url`).
"""
