"""Persist uploaded school images to local disk or to Vercel Blob.

Local development writes into the static image directory and returns a
root-relative path. Deployments that opt into the blob store (``USE_BLOB`` or
running on Vercel with ``BLOB_READ_WRITE_TOKEN``) upload with public access
and return the URL the store issues. Vercel itself without a store is an
error: its filesystem does not outlive the request.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from pathlib import Path
from urllib.parse import quote

import httpx
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from src.config import Settings
from src.environment import in_managed_hosting, use_remote_image_store
from src.errors import ErrorCode, StorageError

logger = logging.getLogger(__name__)

BLOB_KEY_PREFIX = "schools"
_BLOB_API_VERSION = "7"
_DEFAULT_FILENAME = "upload.bin"

_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_filename(name: str) -> str:
    """Make *name* safe as both a path segment and an object key.

    Whitespace runs become ``-`` and anything outside ``[A-Za-z0-9._-]`` is dropped.
    """
    return _UNSAFE_RE.sub("", _WHITESPACE_RE.sub("-", name))


def _epoch_ms() -> int:
    return time.time_ns() // 1_000_000


def unique_filename(name: str, now_ms: int) -> str:
    """Prefix the sanitised *name* with a millisecond timestamp."""
    return f"{now_ms}-{sanitize_filename(name) or _DEFAULT_FILENAME}"


class ImageSink:
    """Store uploaded images and hand back a reference the frontend can load.

    Parameters
    ----------
    settings:
        Application settings; decides the storage strategy.
    transport:
        Optional httpx transport for the blob store client (tests).
    clock:
        Returns the current time in epoch milliseconds.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], int] = _epoch_ms,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._clock = clock
        self._client: httpx.AsyncClient | None = None

    @property
    def images_dir(self) -> Path:
        return Path(self._settings.IMAGES_DIR)

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(transport=self._transport)
        return self._client

    async def save(self, upload: UploadFile | None) -> str | None:
        """Persist *upload* and return its path or URL, or ``None`` without a file.

        Raises:
            StorageError: ``BLOB_NOT_CONFIGURED`` when the blob store is required
                but has no credential, ``BLOB_UPLOAD_FAILED`` when the upload fails.
        """
        if upload is None or not upload.filename:
            return None

        file_name = unique_filename(upload.filename, self._clock())

        if use_remote_image_store(self._settings):
            token = self._settings.BLOB_READ_WRITE_TOKEN
            if not token:
                raise StorageError(
                    ErrorCode.BLOB_NOT_CONFIGURED,
                    "USE_BLOB is enabled but BLOB_READ_WRITE_TOKEN is not set.",
                )
            data = await upload.read()
            return await self._upload_to_blob(file_name, data, upload.content_type, token)

        if in_managed_hosting(self._settings):
            raise StorageError(
                ErrorCode.BLOB_NOT_CONFIGURED,
                "Image storage not configured in production. "
                "Enable Vercel Blob (adds BLOB_READ_WRITE_TOKEN) or set USE_BLOB=true.",
            )

        data = await upload.read()
        return await run_in_threadpool(self._write_local, file_name, data)

    async def _upload_to_blob(self, file_name: str, data: bytes, content_type: str | None, token: str) -> str:
        key = f"{BLOB_KEY_PREFIX}/{file_name}"
        url = f"{self._settings.BLOB_API_URL.rstrip('/')}/{quote(key)}"
        headers = {
            "authorization": f"Bearer {token}",
            "x-api-version": _BLOB_API_VERSION,
            "x-vercel-blob-access": "public",
            "x-add-random-suffix": "0",
        }
        if content_type:
            headers["x-content-type"] = content_type

        try:
            response = await self.client.put(url, content=data, headers=headers)
            response.raise_for_status()
            blob_url = response.json()["url"]
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            logger.error("Blob upload of %s failed: %s", key, exc)
            raise StorageError(
                ErrorCode.BLOB_UPLOAD_FAILED,
                "Failed to upload image to storage. Check Vercel Blob integration and token.",
            ) from exc

        logger.info("Uploaded image %s to blob store", key)
        return blob_url

    def _write_local(self, file_name: str, data: bytes) -> str:
        self.images_dir.mkdir(parents=True, exist_ok=True)
        (self.images_dir / file_name).write_bytes(data)
        return f"{self._settings.IMAGES_URL_PREFIX.rstrip('/')}/{file_name}"

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
