"""
Mirror resolved real headshots into S3 so cards don't depend on third-party
hot-linking, and delete mirrored objects that no card references anymore.

boto3 is blocking, so every S3 call runs in a worker thread.
"""

import asyncio
import hashlib
import logging
import re
from typing import Iterable, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
import httpx

from enrichment.http_utils import UrlCheck, follow_checked_redirects

logger = logging.getLogger(__name__)

PHOTO_PREFIX = "photos"
DOWNLOAD_TIMEOUT = 15.0
MAX_PHOTO_BYTES = 5 * 1024 * 1024

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/svg+xml": "svg",
}


class PhotoMirrorError(Exception):
    """Raised when a photo cannot be downloaded or uploaded."""


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-") or "unknown"


def build_photo_key(company: str, kind: str, source_url: str, content_type: str = "image/jpeg") -> str:
    """
    Deterministic S3 key for a mirrored photo.

    Example:
        build_photo_key("Acme Corp", "manager", "https://media.licdn.com/x.jpg")
        -> "photos/acme-corp/manager-3b9c1f0e5a7d2c41.jpg"
    """
    digest = hashlib.sha1(source_url.encode("utf-8")).hexdigest()[:16]
    ext = _EXTENSIONS.get(content_type.split(";")[0].strip().lower(), "jpg")
    return f"{PHOTO_PREFIX}/{_slug(company)}/{kind}-{digest}.{ext}"


class PhotoStorage:
    """S3-backed photo mirror for one bucket."""

    def __init__(self, bucket: str, s3_client=None):
        self.bucket = bucket
        self._s3 = s3_client

    @property
    def s3(self):
        if self._s3 is None:
            self._s3 = boto3.client("s3")
        return self._s3

    @property
    def base_url(self) -> str:
        return f"https://{self.bucket}.s3.amazonaws.com/"

    def public_url(self, key: str) -> str:
        return f"{self.base_url}{key}"

    def key_for_url(self, url: Optional[str]) -> Optional[str]:
        """Object key for a URL that points into this bucket, else None."""
        if url and url.startswith(self.base_url):
            return url[len(self.base_url):]
        return None

    async def mirror(
        self,
        client: httpx.AsyncClient,
        source_url: str,
        company: str,
        kind: str,
        check_url: Optional[UrlCheck] = None,
    ) -> str:
        """
        Download an image and upload it to the bucket.

        Redirects are only followed when check_url is given, and every
        redirect target must pass it.

        Returns:
            Public URL of the mirrored object

        Raises:
            PhotoMirrorError: On download failure, refused redirect, non-image
                response or upload failure
        """
        try:
            response = await follow_checked_redirects(client, "GET", source_url, check_url, DOWNLOAD_TIMEOUT)
            if response is None:
                raise PhotoMirrorError(f"Refused redirect while downloading {source_url}")
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise PhotoMirrorError(f"Download failed for {source_url}: {e}") from e

        content_type = response.headers.get("content-type", "image/jpeg")
        if not content_type.startswith("image/"):
            raise PhotoMirrorError(f"Not an image ({content_type}): {source_url}")
        if len(response.content) > MAX_PHOTO_BYTES:
            raise PhotoMirrorError(f"Image too large ({len(response.content)} bytes): {source_url}")

        key = build_photo_key(company, kind, source_url, content_type)
        try:
            await asyncio.to_thread(
                self.s3.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=response.content,
                ContentType=content_type,
                CacheControl="public, max-age=31536000, immutable",
            )
        except (BotoCoreError, ClientError) as e:
            raise PhotoMirrorError(f"Upload failed for s3://{self.bucket}/{key}: {e}") from e

        logger.info(f"Mirrored photo to s3://{self.bucket}/{key} ({len(response.content)} bytes)")
        return self.public_url(key)

    async def delete_object(self, key: str) -> None:
        await asyncio.to_thread(self.s3.delete_object, Bucket=self.bucket, Key=key)
        logger.info(f"Deleted orphaned photo s3://{self.bucket}/{key}")

    def orphaned_keys(self, old_urls: Iterable[Optional[str]], new_urls: Iterable[Optional[str]]) -> list[str]:
        """Keys of mirrored objects referenced by old_urls but not by new_urls."""
        still_used = {self.key_for_url(url) for url in new_urls}
        orphans = []
        for url in old_urls:
            key = self.key_for_url(url)
            if key and key not in still_used and key not in orphans:
                orphans.append(key)
        return orphans
