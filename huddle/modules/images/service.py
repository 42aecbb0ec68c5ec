from fastapi import UploadFile
from supabase import Client
from huddle.core.cache import ViewCache
from huddle.core.dependencies import require_member_role
from huddle.core.errors import ActionError, Forbidden, NotFound, UpstreamFailure, ValidationFailed
from huddle.core.permissions import can_manage_group_images
from huddle.core.responses import ActionResult
from huddle.database.helpers import fetch_by_id
from huddle.modules.events.service import EventService
from huddle.modules.groups.service import group_paths
from huddle.modules.images.resize import MB, resize_image, validate_image_file
from huddle.modules.images.schemas import EventImageResponse, ImageUrlResponse
from huddle.modules.images.storage import (
    EVENT_IMAGES_BUCKET, GROUP_IMAGES_BUCKET, get_image_storage, path_from_url
)
from typing import List, Optional, Tuple
import logging
import uuid

logger = logging.getLogger(__name__)

MAX_IMAGES_PER_EVENT = 5
MAX_EVENT_IMAGE_BYTES = 5 * MB
MAX_GROUP_IMAGE_BYTES = 5 * MB


async def read_upload(file: UploadFile) -> Tuple[bytes, str]:
    content = await file.read()
    return content, (file.content_type or "").lower()


class EventImageService:
    def __init__(self, supabase: Client, cache: Optional[ViewCache] = None, storage=None):
        self.supabase = supabase
        self.cache = cache or ViewCache()
        self.storage = storage or get_image_storage(supabase, EVENT_IMAGES_BUCKET)
        self.events = EventService(supabase, self.cache)

    def _image_count(self, event_id: str) -> int:
        result = self.supabase.table("event_images")\
            .select("id")\
            .eq("event_id", event_id)\
            .execute()
        return len(result.data or [])

    async def upload_event_images(self, event_id: str, files: List[UploadFile], user_id: str) -> ActionResult[List[EventImageResponse]]:
        """Validate every file first, then resize, store and record them in order"""
        event, _ = self.events.authorize_manage(event_id, user_id)

        if not files:
            raise ValidationFailed("Please choose images to upload")

        try:
            current_count = self._image_count(event_id)
        except Exception as e:
            logger.error(f"Error counting event images: {e}")
            raise UpstreamFailure("Failed to upload images")

        if current_count + len(files) > MAX_IMAGES_PER_EVENT:
            raise ValidationFailed(
                f"Up to {MAX_IMAGES_PER_EVENT} images per event (currently {current_count})"
            )

        uploads = [await read_upload(f) for f in files]
        for content, content_type in uploads:
            validate_image_file(content_type, len(content), MAX_EVENT_IMAGE_BYTES)
        # decode everything before the first write so a bad file stores nothing
        images = [resize_image(content, content_type) for content, content_type in uploads]

        uploaded = []
        try:
            for offset, image in enumerate(images):
                path = f"{event_id}/{uuid.uuid4()}.{image.extension}"
                public_url = self.storage.upload(path, image.content, image.content_type)

                result = self.supabase.table("event_images").insert({
                    "event_id": event_id,
                    "image_url": public_url,
                    "display_order": current_count + offset
                }).execute()
                uploaded.append(EventImageResponse(**result.data[0]))
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error uploading event images: {e}")
            raise UpstreamFailure("Failed to upload images")

        logger.info(f"Uploaded {len(uploaded)} images to event {event_id}")
        self.cache.invalidate(f"/groups/{event['group_id']}/events/{event_id}")
        return ActionResult(data=uploaded)

    def delete_event_image(self, image_id: str, user_id: str) -> ActionResult[None]:
        image = fetch_by_id(self.supabase, "event_images", image_id)
        if not image:
            raise NotFound("Image not found")
        event, _ = self.events.authorize_manage(image["event_id"], user_id)

        path = path_from_url(image["image_url"], self.storage.bucket)
        if path:
            try:
                self.storage.remove([path])
            except Exception as e:
                logger.error(f"Error removing stored image {path}: {e}")

        try:
            self.supabase.table("event_images")\
                .delete()\
                .eq("id", image_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting event image: {e}")
            raise UpstreamFailure("Failed to delete image")

        self.cache.invalidate(f"/groups/{event['group_id']}/events/{image['event_id']}")
        return ActionResult()

    def list_event_images(self, event_id: str, user_id: str) -> List[EventImageResponse]:
        event = self.events.load_event(event_id)
        require_member_role(self.supabase, event["group_id"], user_id)
        try:
            result = self.supabase.table("event_images")\
                .select("*")\
                .eq("event_id", event_id)\
                .order("display_order")\
                .execute()
        except Exception as e:
            logger.error(f"Error listing event images: {e}")
            raise UpstreamFailure("Failed to load images")
        return [EventImageResponse(**row) for row in result.data or []]

    def reorder_event_images(self, event_id: str, image_ids: List[str], user_id: str) -> ActionResult[None]:
        """display_order becomes each image's index in image_ids"""
        event, _ = self.events.authorize_manage(event_id, user_id)
        try:
            for order, image_id in enumerate(image_ids):
                self.supabase.table("event_images")\
                    .update({"display_order": order})\
                    .eq("id", image_id)\
                    .eq("event_id", event_id)\
                    .execute()
        except Exception as e:
            logger.error(f"Error reordering event images: {e}")
            raise UpstreamFailure("Failed to reorder images")

        self.cache.invalidate(f"/groups/{event['group_id']}/events/{event_id}")
        return ActionResult()


class GroupImageService:
    def __init__(self, supabase: Client, cache: Optional[ViewCache] = None, storage=None):
        self.supabase = supabase
        self.cache = cache or ViewCache()
        self.storage = storage or get_image_storage(supabase, GROUP_IMAGES_BUCKET)

    def _authorize(self, group_id: str, user_id: str) -> dict:
        group = fetch_by_id(self.supabase, "groups", group_id, "id, image_url")
        if not group:
            raise NotFound("Group not found")
        role = require_member_role(self.supabase, group_id, user_id)
        if not can_manage_group_images(role):
            raise Forbidden("Only owners and admins can change the group image")
        return group

    def _remove_stored(self, url: Optional[str]) -> None:
        path = path_from_url(url, self.storage.bucket)
        if not path:
            return
        try:
            self.storage.remove([path])
        except Exception as e:
            logger.error(f"Error removing group image {path}: {e}")

    async def upload_group_image(self, group_id: str, file: UploadFile, user_id: str) -> ActionResult[ImageUrlResponse]:
        """Store a new group image and replace the previous one"""
        group = self._authorize(group_id, user_id)
        content, content_type = await read_upload(file)
        validate_image_file(content_type, len(content), MAX_GROUP_IMAGE_BYTES)

        try:
            image = resize_image(content, content_type)
            public_url = self.storage.upload(
                f"{group_id}/{uuid.uuid4()}.{image.extension}", image.content, image.content_type
            )
            self.supabase.table("groups")\
                .update({"image_url": public_url})\
                .eq("id", group_id)\
                .execute()
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error uploading group image: {e}")
            raise UpstreamFailure("Failed to upload image")

        self._remove_stored(group.get("image_url"))
        self.cache.invalidate(*group_paths(group_id))
        return ActionResult(data=ImageUrlResponse(image_url=public_url))

    def delete_group_image(self, group_id: str, user_id: str) -> ActionResult[ImageUrlResponse]:
        group = self._authorize(group_id, user_id)
        if not group.get("image_url"):
            raise ValidationFailed("There is no image to delete")

        self._remove_stored(group["image_url"])
        try:
            self.supabase.table("groups")\
                .update({"image_url": None})\
                .eq("id", group_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error clearing group image: {e}")
            raise UpstreamFailure("Failed to delete image")

        self.cache.invalidate(*group_paths(group_id))
        return ActionResult(data=ImageUrlResponse(image_url=None))
