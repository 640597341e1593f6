"""
Client for the asset upload endpoint.

POSTs a file as multipart form data and returns the stored asset's public
URL. Used by the rich-text editor for inline images.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


DEFAULT_UPLOAD_ENDPOINT = "/api/uploads"


class UploadError(Exception):
    """Raised when the upload endpoint rejects or fails a file."""
    pass


@dataclass
class UploadFile:
    """A file picked, dropped or pasted by the author."""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def is_image(self) -> bool:
        """Check if the file is an image by MIME type."""
        return self.content_type.startswith("image/")


@dataclass
class UploadedAsset:
    """Upload endpoint response."""
    url: str
    path: str
    id: Optional[str] = None


class AssetUploadClient:
    """
    Uploads files to the CMS asset endpoint.

    Args:
        client: httpx.AsyncClient configured with the CMS base URL (and any
            auth headers). Its lifetime is owned by the caller.
        endpoint: Path of the upload endpoint.
        bucket: Optional storage bucket to request.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: str = DEFAULT_UPLOAD_ENDPOINT,
        bucket: Optional[str] = None,
    ):
        self.client = client
        self.endpoint = endpoint
        self.bucket = bucket

    async def upload(self, file: UploadFile) -> UploadedAsset:
        """
        Upload a file.

        Raises:
            UploadError: On transport errors, non-2xx responses or a
                response without a URL.
        """
        data = {"bucket": self.bucket} if self.bucket else None
        files = {"file": (file.filename, file.content, file.content_type)}

        try:
            response = await self.client.post(self.endpoint, files=files, data=data)
        except httpx.HTTPError as e:
            raise UploadError(f"Upload request failed: {e}")

        if not response.is_success:
            raise UploadError(f"Upload failed ({response.status_code}): {_error_message(response)}")

        try:
            payload = response.json()
        except ValueError as e:
            raise UploadError(f"Upload response was not JSON: {e}")

        if not isinstance(payload, dict):
            raise UploadError("Upload response was not a JSON object")

        url = payload.get("url")
        if not url:
            raise UploadError("Upload response did not include a URL")

        logger.info(f"Uploaded {file.filename} -> {url}")
        return UploadedAsset(url=url, path=payload.get("path", ""), id=payload.get("id"))


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return response.text
