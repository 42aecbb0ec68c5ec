# Supabase table: profiles
# One row per auth user, created on first sign-in by the auth callback.

"""
profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (nullable)
- full_name: text (nullable) - from the OAuth provider name, editable
- avatar_url: text (nullable) - either a provider-hosted picture or a
  public URL in the avatars bucket; only the latter can be deleted here
- created_at: timestamptz (default: now())
"""
