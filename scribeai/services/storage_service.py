"""
Google Cloud Storage client for staging audio
"""

import time
import uuid
from typing import Optional
from urllib.parse import quote

import httpx

from scribeai.config import settings
from scribeai.core.logging import get_logger
from scribeai.exceptions import ScribeError, StorageError
from scribeai.models.domain import AudioObject
from scribeai.services.google_api import GoogleApiClient, TokenProvider

logger = get_logger(__name__)

EXTENSIONS = {
    "webm": ".webm",
    "ogg": ".ogg",
    "opus": ".ogg",
    "mpeg": ".mp3",
    "mp3": ".mp3",
    "wav": ".wav",
    "flac": ".flac",
    "m4a": ".m4a",
    "mp4": ".m4a",
}


def extension_for_content_type(content_type: str) -> str:
    """Maps a MIME type to a file extension for the object name."""
    content_type = (content_type or "").lower()
    for marker, extension in EXTENSIONS.items():
        if marker in content_type:
            return extension
    return ".bin"


def make_object_name(content_type: str, prefix: str = "audio", now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    # unique per call, even within one millisecond
    return f"{prefix}-{now_ms}-{uuid.uuid4().hex[:8]}{extension_for_content_type(content_type)}"


class StorageService(GoogleApiClient):
    """Upload and best-effort delete of opaque objects."""

    service_name = "gcs"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_provider: TokenProvider,
        api_base_url: Optional[str] = None,
        upload_base_url: Optional[str] = None,
    ):
        super().__init__(http_client, token_provider)
        self.api_base_url = (api_base_url or settings.storage_api_base_url).rstrip("/")
        self.upload_base_url = (upload_base_url or settings.storage_upload_base_url).rstrip("/")

    async def upload(self, audio: AudioObject) -> str:
        """
        Single media upload. Returns the gs:// URI.

        Raises:
            StorageError: on any non-2xx status or transport failure.
            AuthError: if no access token is available.
        """
        url = f"{self.upload_base_url}/b/{audio.bucket}/o"
        logger.info(f"Attempting to upload {audio.name} ({audio.size} bytes) to bucket {audio.bucket}...")

        try:
            response = await self._request(
                "POST",
                url,
                params={"uploadType": "media", "name": audio.name},
                content=audio.data,
                headers={"Content-Type": audio.content_type},
            )
        except httpx.HTTPError as e:
            raise StorageError(None, str(e), object_name=audio.name) from e

        if not response.is_success:
            raise StorageError(response.status_code, response.text, object_name=audio.name)

        logger.info(f"GCS Upload Response ({response.status_code}): {response.text[:200]}")
        return audio.gcs_uri

    async def delete(self, bucket: str, name: str) -> bool:
        """
        Best-effort delete. A missing object counts as deleted. Never raises;
        returns False when the object may still exist.
        """
        url = f"{self.api_base_url}/b/{bucket}/o/{quote(name, safe='')}"
        try:
            response = await self._request("DELETE", url)
        except (httpx.HTTPError, ScribeError) as e:
            logger.warning(f"Failed to delete gs://{bucket}/{name}: {e}")
            return False

        if response.is_success:
            logger.info(f"Successfully deleted GCS object: gs://{bucket}/{name}")
            return True
        if response.status_code == 404:
            logger.info(f"GCS object not found for deletion (already deleted?): gs://{bucket}/{name}")
            return True

        logger.warning(
            f"Failed to delete GCS object gs://{bucket}/{name}. "
            f"Code: {response.status_code}, Response: {response.text[:200]}"
        )
        return False
