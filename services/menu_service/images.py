"""
Menu item images.

Images arrive as data URIs (``data:image/png;base64,...``). They are
validated and decoded here, then handed to an ImageStore which returns
the durable URL persisted on the menu item. The store is injected into
the menu endpoints, so the catalog code never depends on a specific host.
"""
import asyncio
import base64
import binascii
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

import httpx

from shared.config import settings
from shared.errors import ValidationError

MAX_IMAGE_BYTES = 5 * 1024 * 1024
ACCEPTED_IMAGE_MIME_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}

DATA_URI_PATTERN = re.compile(r"^data:([a-zA-Z0-9]+/[a-zA-Z0-9\-.+]+);base64,(.*)$", re.DOTALL)


class ImageStoreError(Exception):
    """Raised when the image store cannot complete an upload or delete."""


@dataclass(frozen=True)
class DecodedImage:
    mime_type: str
    content: bytes

    @property
    def extension(self) -> str:
        return ACCEPTED_IMAGE_MIME_TYPES[self.mime_type]


def decode_image(data_uri: str) -> DecodedImage:
    match = DATA_URI_PATTERN.match(data_uri.strip())
    if not match:
        raise ValidationError("Invalid image format")

    mime_type, payload = match.groups()
    if mime_type not in ACCEPTED_IMAGE_MIME_TYPES:
        raise ValidationError("Only .jpg, .jpeg, .png and .webp formats are supported.")

    if not payload:
        raise ValidationError("Invalid image data")

    # Reject from the encoded length before paying for the decode
    if len(payload) * 3 // 4 > MAX_IMAGE_BYTES + 2:
        raise ValidationError(f"File is too large. Max size is {MAX_IMAGE_BYTES // 1024 // 1024}MB")

    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Invalid image data")

    if not content:
        raise ValidationError("Invalid image data")
    if len(content) > MAX_IMAGE_BYTES:
        raise ValidationError(f"File is too large. Max size is {MAX_IMAGE_BYTES // 1024 // 1024}MB")

    return DecodedImage(mime_type=mime_type, content=content)


class ImageStore(Protocol):
    async def upload(self, image: DecodedImage) -> str: ...

    async def delete(self, url: str) -> None: ...


class HttpImageStore:
    """Image host reached over HTTP: multipart POST to upload, DELETE on the returned URL."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._auth_headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _owns(self, url: str) -> bool:
        return url.startswith(f"{self.base_url}/")

    async def upload(self, image: DecodedImage) -> str:
        filename = f"{uuid.uuid4().hex}.{image.extension}"
        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{self.base_url}/",
                    files={"file": (filename, image.content, image.mime_type)},
                    data={"folder": "menu-items"},
                    headers=self._auth_headers,
                )
                resp.raise_for_status()
                return resp.json()["url"]
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            raise ImageStoreError(f"Image upload failed: {exc}") from exc

    async def delete(self, url: str) -> None:
        # The API key only ever goes to the image host itself
        headers = self._auth_headers if self._owns(url) else {}
        try:
            async with self._client() as client:
                resp = await client.delete(url, headers=headers)
                if resp.status_code != 404:
                    resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise ImageStoreError(f"Image removal failed: {exc}") from exc


class LocalImageStore:
    """Stores images on the local filesystem under ``root``, served from ``base_url``."""

    def __init__(self, root: str, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    async def upload(self, image: DecodedImage) -> str:
        filename = f"{uuid.uuid4().hex}.{image.extension}"
        try:
            await asyncio.to_thread(self._write, self.root / filename, image.content)
        except OSError as exc:
            raise ImageStoreError(f"Image upload failed: {exc}") from exc
        return f"{self.base_url}/{filename}"

    async def delete(self, url: str) -> None:
        prefix = f"{self.base_url}/"
        if not url.startswith(prefix):
            return  # not ours

        filename = url[len(prefix):]
        if not filename or Path(filename).name != filename:
            return

        try:
            await asyncio.to_thread((self.root / filename).unlink, missing_ok=True)
        except OSError as exc:
            raise ImageStoreError(f"Image removal failed: {exc}") from exc


def get_image_store() -> ImageStore:
    if settings.IMAGE_STORE_URL:
        return HttpImageStore(settings.IMAGE_STORE_URL, settings.IMAGE_STORE_API_KEY)
    return LocalImageStore(settings.MEDIA_ROOT, settings.MEDIA_URL)
