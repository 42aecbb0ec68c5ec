# Supabase table: event_images, plus three public storage buckets
# Buckets: event-images ({event_id}/{uuid}.{ext}), group-images
# ({group_id}/{uuid}.{ext}), avatars ({user_id}/{uuid}.{ext}).
# With S3 configured the bucket name becomes a key prefix instead.

"""
event_images:
- id: uuid (primary key)
- event_id: uuid (foreign key to events.id, on delete cascade)
- image_url: text - public URL of the stored object
- display_order: integer - 0-based carousel position
- created_at: timestamptz (default: now())

groups.image_url and profiles.avatar_url hold the public URL of the
group image / avatar.
"""
