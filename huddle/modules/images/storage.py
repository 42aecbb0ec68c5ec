import boto3
from botocore.exceptions import ClientError
from huddle.config.settings import settings
from supabase import Client
from typing import List, Optional
from urllib.parse import urlparse
import logging

logger = logging.getLogger(__name__)

EVENT_IMAGES_BUCKET = "event-images"
GROUP_IMAGES_BUCKET = "group-images"
AVATARS_BUCKET = "avatars"


def path_from_url(url: Optional[str], bucket: str) -> Optional[str]:
    """Object path of a public URL: everything after the bucket segment, or None"""
    if not url:
        return None
    parts = urlparse(url).path.split("/")
    if bucket not in parts:
        return None
    path = "/".join(parts[parts.index(bucket) + 1:])
    return path or None


class SupabaseImageStorage:
    """Public image bucket in Supabase Storage"""

    def __init__(self, supabase: Client, bucket: str):
        self.supabase = supabase
        self.bucket = bucket

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        self.supabase.storage.from_(self.bucket).upload(
            path,
            content,
            file_options={"content-type": content_type, "cache-control": "3600", "upsert": "false"}
        )
        return self.public_url(path)

    def remove(self, paths: List[str]) -> None:
        self.supabase.storage.from_(self.bucket).remove(paths)

    def public_url(self, path: str) -> str:
        return self.supabase.storage.from_(self.bucket).get_public_url(path)

    def owns_url(self, url: Optional[str]) -> bool:
        return bool(url) and f"/storage/v1/object/public/{self.bucket}/" in url


class S3ImageStorage:
    """Same interface over one S3 bucket; each logical bucket is a key prefix"""

    def __init__(self, bucket: str):
        if not settings.s3_configured:
            raise ValueError("AWS S3 credentials and bucket name must be configured")

        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = settings.s3_bucket_name
        self.bucket = bucket
        self.base_url = (
            settings.s3_public_base_url
            or f"https://{self.bucket_name}.s3.{settings.aws_region}.amazonaws.com"
        ).rstrip("/")

    def _key(self, path: str) -> str:
        return f"{self.bucket}/{path}"

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=self._key(path),
                Body=content,
                ContentType=content_type,
                CacheControl="max-age=3600"
            )
        except ClientError as e:
            logger.error(f"Failed to upload image to S3: {str(e)}")
            raise
        return self.public_url(path)

    def remove(self, paths: List[str]) -> None:
        try:
            self.s3_client.delete_objects(
                Bucket=self.bucket_name,
                Delete={"Objects": [{"Key": self._key(p)} for p in paths]}
            )
        except ClientError as e:
            logger.error(f"Failed to delete images from S3: {str(e)}")
            raise

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/{self._key(path)}"

    def owns_url(self, url: Optional[str]) -> bool:
        return bool(url) and url.startswith(f"{self.base_url}/{self.bucket}/")


def get_image_storage(supabase: Client, bucket: str):
    """S3 when configured, otherwise Supabase Storage"""
    if settings.s3_configured:
        try:
            return S3ImageStorage(bucket)
        except Exception as e:
            logger.warning(f"S3 storage initialization failed ({str(e)}), will use Supabase Storage")
    return SupabaseImageStorage(supabase, bucket)
