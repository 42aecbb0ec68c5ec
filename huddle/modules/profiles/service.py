from fastapi import UploadFile
from supabase import Client
from huddle.core.cache import ViewCache
from huddle.core.errors import ActionError, Forbidden, NotFound, UpstreamFailure, ValidationFailed
from huddle.core.responses import ActionResult
from huddle.database.helpers import fetch_by_id
from huddle.modules.images.resize import MB, resize_image, validate_image_file
from huddle.modules.images.service import read_upload
from huddle.modules.images.storage import AVATARS_BUCKET, get_image_storage, path_from_url
from huddle.modules.profiles.schemas import ProfileUpdate, ProfileResponse
from typing import Optional, Dict, Any
import logging
import uuid

logger = logging.getLogger(__name__)

MAX_AVATAR_BYTES = 2 * MB
PROFILE_PATHS = ("/settings", "/dashboard")


class ProfileService:
    def __init__(self, supabase: Client, cache: Optional[ViewCache] = None, storage=None):
        self.supabase = supabase
        self.cache = cache or ViewCache()
        self.storage = storage or get_image_storage(supabase, AVATARS_BUCKET)

    def _load(self, user_id: str) -> Dict[str, Any]:
        try:
            profile = fetch_by_id(self.supabase, "profiles", user_id)
        except Exception as e:
            logger.error(f"Error loading profile: {e}")
            raise UpstreamFailure("Failed to load profile")
        if not profile:
            raise NotFound("Profile not found")
        return profile

    def get_my_profile(self, user_id: str) -> ProfileResponse:
        return ProfileResponse(**self._load(user_id))

    def update_my_profile(self, user_id: str, data: ProfileUpdate) -> ActionResult[ProfileResponse]:
        try:
            result = self.supabase.table("profiles")\
                .update({"full_name": data.full_name.strip()})\
                .eq("id", user_id)\
                .execute()
            if not result.data:
                raise NotFound("Profile not found")
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error updating profile: {e}")
            raise UpstreamFailure("Failed to update profile")

        self.cache.invalidate(*PROFILE_PATHS)
        return ActionResult(data=ProfileResponse(**result.data[0]))

    def _remove_stored(self, url: Optional[str]) -> None:
        if not self.storage.owns_url(url):
            return
        path = path_from_url(url, self.storage.bucket)
        if not path:
            return
        try:
            self.storage.remove([path])
        except Exception as e:
            logger.error(f"Error removing avatar {path}: {e}")

    async def upload_avatar(self, user_id: str, file: UploadFile) -> ActionResult[ProfileResponse]:
        profile = self._load(user_id)
        content, content_type = await read_upload(file)
        validate_image_file(content_type, len(content), MAX_AVATAR_BYTES)

        try:
            image = resize_image(content, content_type)
            public_url = self.storage.upload(
                f"{user_id}/{uuid.uuid4()}.{image.extension}", image.content, image.content_type
            )
            result = self.supabase.table("profiles")\
                .update({"avatar_url": public_url})\
                .eq("id", user_id)\
                .execute()
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error uploading avatar: {e}")
            raise UpstreamFailure("Failed to upload avatar")

        # only avatars we stored are removed; provider pictures are left alone
        self._remove_stored(profile.get("avatar_url"))
        self.cache.invalidate(*PROFILE_PATHS)
        return ActionResult(data=ProfileResponse(**result.data[0]))

    def delete_avatar(self, user_id: str) -> ActionResult[ProfileResponse]:
        profile = self._load(user_id)
        avatar_url = profile.get("avatar_url")
        if not avatar_url:
            raise ValidationFailed("There is no avatar to delete")
        if not self.storage.owns_url(avatar_url):
            raise Forbidden("Social login profile pictures cannot be deleted")

        self._remove_stored(avatar_url)
        try:
            result = self.supabase.table("profiles")\
                .update({"avatar_url": None})\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error clearing avatar: {e}")
            raise UpstreamFailure("Failed to delete avatar")

        self.cache.invalidate(*PROFILE_PATHS)
        return ActionResult(data=ProfileResponse(**result.data[0]))
