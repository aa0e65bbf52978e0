"""
Media Relay

Stores uploaded post images with an external media host and hands back a
durable URL. Cloudinary is the production host.
"""
import hashlib
import logging
import time
import uuid
from abc import ABC, abstractmethod
from pathlib import PurePath
from typing import Optional

import httpx

from writique.core import errors

logger = logging.getLogger(__name__)

CLOUDINARY_UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/auto/upload"


class MediaRelay(ABC):
    """Media host abstract base class"""

    @abstractmethod
    async def upload(self, data: bytes, filename: str, content_type: Optional[str] = None) -> str:
        """
        Upload an image and return its public URL.

        Raises:
            errors.UpstreamError: the host rejected the upload or was unreachable
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the relay is configured"""

    @property
    @abstractmethod
    def name(self) -> str:
        """Relay name (e.g., "Cloudinary")"""


def cloudinary_signature(params: dict[str, str], api_secret: str) -> str:
    """
    Cloudinary request signature: SHA-1 over the sorted `key=value` pairs
    joined with `&`, followed directly by the API secret.
    """
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] != "")
    return hashlib.sha1((to_sign + api_secret).encode("utf-8")).hexdigest()


def unique_public_id(filename: Optional[str]) -> str:
    """
    Public id for a new asset: the file stem plus a random suffix.
    Signed uploads overwrite an existing asset with the same public id, so
    two users uploading "cover.png" must never share one.
    """
    stem = PurePath(filename or "").stem
    suffix = uuid.uuid4().hex[:12]
    return f"{stem}_{suffix}" if stem else suffix


class CloudinaryMediaRelay(MediaRelay):
    """Signed uploads to the Cloudinary upload API"""

    def __init__(
        self,
        cloud_name: Optional[str],
        api_key: Optional[str],
        api_secret: Optional[str],
        folder: str = "writique_blogs",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "Cloudinary"

    def is_available(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    async def upload(self, data: bytes, filename: str, content_type: Optional[str] = None) -> str:
        if not self.is_available():
            logger.error("%s upload attempted without credentials", self.name)
            raise errors.UpstreamError(message="Image upload is not configured")

        params = {
            "folder": self.folder,
            "public_id": unique_public_id(filename),
            "timestamp": str(int(time.time())),
        }
        params = {k: v for k, v in params.items() if v}
        form = {**params, "api_key": self.api_key, "signature": cloudinary_signature(params, self.api_secret)}
        files = {"file": (filename or "upload", data, content_type or "application/octet-stream")}
        url = CLOUDINARY_UPLOAD_URL.format(cloud_name=self.cloud_name)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, data=form, files=files)
                resp.raise_for_status()
                result = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("%s upload of %s failed: %s", self.name, filename, e)
            raise errors.UpstreamError(message="Image upload failed")

        secure_url = result.get("secure_url")
        if not secure_url:
            logger.error("%s upload of %s returned no secure_url", self.name, filename)
            raise errors.UpstreamError(message="Image upload failed")
        logger.info("%s stored %s (%d bytes)", self.name, secure_url, len(data))
        return secure_url
