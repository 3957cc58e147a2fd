"""Object storage uploads for avatars and resumes."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from skillmatch.dal.base import run_sync
from skillmatch.rest.client import RestClient
from skillmatch.rest.errors import RestError

logger = logging.getLogger(__name__)

STORAGE_PATH = "/storage/v1/object"
AVATARS = "avatars"
RESUMES = "resumes"


@dataclass(slots=True)
class UploadResult:
    public_url: str | None = None
    error: str | None = None


class StorageClient:

    def __init__(self, client: RestClient):
        self.client = client

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.client.base_url}{STORAGE_PATH}/public/{bucket}/{path}"

    def _upload(self, bucket: str, path: str, content: bytes, content_type: str) -> None:
        filename = path.rsplit("/", 1)[-1]
        self.client.request(
            "POST",
            f"{STORAGE_PATH}/{bucket}/{path}",
            files={"file": (filename, content, content_type)},
            prefer=None,
        )

    async def upload(
        self, bucket: str, path: str, content: bytes, content_type: str = "application/octet-stream"
    ) -> UploadResult:
        try:
            await run_sync(self._upload, bucket, path, content, content_type)
        except RestError as exc:
            logger.warning("Upload to %s/%s failed: %s", bucket, path, exc)
            return UploadResult(error=exc.message)
        return UploadResult(public_url=self.public_url(bucket, path))

    async def upload_avatar(self, user_id: str, content: bytes) -> UploadResult:
        path = f"{user_id}/{int(time.time() * 1000)}.jpg"
        return await self.upload(AVATARS, path, content, "image/jpeg")

    async def upload_resume(self, user_id: str, file_path: Path, content_type: str = "application/pdf") -> UploadResult:
        try:
            content = file_path.read_bytes()
        except OSError as exc:
            return UploadResult(error=f"Cannot read {file_path}: {exc}")
        ext = file_path.suffix.lstrip(".") or "pdf"
        path = f"{user_id}/{int(time.time() * 1000)}.{ext}"
        return await self.upload(RESUMES, path, content, content_type)
