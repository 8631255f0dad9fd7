"""Two-phase upload gateway.

1. Ask the upload service for a short-lived pre-signed URL (``/upload-url``).
2. PUT the raw file bytes straight to storage at that URL.

Failure in either phase fails the whole upload.
"""

import logging
from dataclasses import dataclass

import httpx

from ..config import get_upload_endpoint
from ..core import LocalFile
from .base import GatewayError, JsonGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadTarget:
    upload_url: str
    remote_path: str


class UploadGateway(JsonGateway):
    name = "upload"

    def __init__(self, base_url: str | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(get_upload_endpoint() if base_url is None else base_url, client)

    async def request_upload(self, user_id: str, file: LocalFile) -> UploadTarget:
        data = await self._post("/upload-url", {
            "userId": user_id,
            "fileName": file.name,
            "fileType": file.content_type,
            "fileSize": file.size,
        })

        upload_url = data.get("uploadUrl")
        remote_path = data.get("s3Path")
        if not upload_url or not remote_path:
            raise GatewayError("upload API response is missing uploadUrl or s3Path")
        return UploadTarget(upload_url=upload_url, remote_path=remote_path)

    async def transfer(self, target: UploadTarget, file: LocalFile) -> None:
        try:
            resp = await self.client.put(
                target.upload_url,
                content=file.data,
                headers={"Content-Type": file.content_type},
            )
        except httpx.HTTPError as e:
            raise GatewayError(f"storage upload failed: {e}") from e

        if not resp.is_success:
            raise GatewayError(f"storage upload failed: {resp.status_code}")

    async def upload(self, user_id: str, file: LocalFile) -> str:
        """Upload ``file`` and return its remote storage path."""
        target = await self.request_upload(user_id, file)
        await self.transfer(target, file)
        logger.info("Uploaded %s (%d bytes) to %s", file.name, file.size, target.remote_path)
        return target.remote_path
