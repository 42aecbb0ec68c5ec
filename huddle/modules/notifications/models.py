# Supabase tables: notification_logs, user_notification_settings
# Rows in notification_logs are written by the fan-out (fanout.py) only,
# one per recipient that had at least one successful push.

"""
notification_logs:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, on delete cascade)
- type: new_event | reminder | announcement
- title: text
- message: text
- related_event_id: uuid (nullable, foreign key to events.id)
- sent_at: timestamptz (default: now())
- read_at: timestamptz (nullable) - unread while null

user_notification_settings:
- user_id: uuid (primary key, foreign key to profiles.id)
- new_event_enabled: boolean (default: true)
- reminder_enabled: boolean (default: true)
- announcement_enabled: boolean (default: true)
- updated_at: timestamptz

A user without a settings row receives every category.
"""
