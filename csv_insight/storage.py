"""
Ports to the outside world: where CSV bytes come from and where charts go.

The pipeline itself does no I/O. Callers hand it a FileFetcher (bytes in)
and optionally a ChartSink (serialized chart out).
"""

import logging
import os
import re
from typing import Optional, Protocol
from urllib.parse import parse_qs, urlsplit

import httpx

from .errors import UnsupportedSourceError

logger = logging.getLogger(__name__)

FILE_SERVICE_BASE_URL = os.getenv("FILE_SERVICE_BASE_URL", "http://localhost:3000")
FETCH_TIMEOUT_SECONDS = float(os.getenv("FETCH_TIMEOUT_SECONDS", "30"))
MAX_FILE_SIZE_MB = int(os.getenv("MAX_FILE_SIZE_MB", "50"))

PROXY_PATH = "/api/files/get"
_OBJECT_URL_RE = re.compile(r"r2\.cloudflarestorage\.com/([^?]+)")


class FileFetcher(Protocol):
    async def fetch(self, file_url: str) -> bytes:
        ...


class ChartSink(Protocol):
    def write(self, artifact_id: str, title: str, chart_json: str) -> None:
        ...


def resolve_object_key(file_url: str) -> str:
    """
    Map a file reference to its storage key.

    Accepted forms:
    - proxy URL: /api/files/get?key=<key> (relative or absolute)
    - object-store URL: https://<account>.r2.cloudflarestorage.com/<key>
    """
    if not file_url or not file_url.strip():
        raise UnsupportedSourceError("No file URL provided.")

    url = file_url.strip()
    parts = urlsplit(url)
    if parts.path == PROXY_PATH:
        keys = parse_qs(parts.query).get("key")
        if not keys or not keys[0]:
            raise UnsupportedSourceError("No key parameter found in URL")
        return keys[0]

    if "r2.cloudflarestorage.com" in url:
        match = _OBJECT_URL_RE.search(url)
        if not match:
            raise UnsupportedSourceError("Could not extract key from object storage URL")
        return match.group(1)

    raise UnsupportedSourceError(
        f"Unsupported URL format: {file_url}. "
        f"Expected proxy URL ({PROXY_PATH}?key=...) or object storage URL."
    )


class HttpFileFetcher:
    """Fetch file bytes through the file service's proxy endpoint. No retries."""

    def __init__(
        self,
        base_url: str = FILE_SERVICE_BASE_URL,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
        max_bytes: int = MAX_FILE_SIZE_MB * 1024 * 1024,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_bytes = max_bytes
        self._client = client

    async def _get(self, key: str) -> httpx.Response:
        url = self.base_url + PROXY_PATH
        if self._client is not None:
            return await self._client.get(url, params={"key": key})
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(url, params={"key": key})

    async def fetch(self, file_url: str) -> bytes:
        key = resolve_object_key(file_url)
        logger.info("fetch.start key=%s", key)

        try:
            response = await self._get(key)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("fetch.failed key=%s status=%d", key, e.response.status_code)
            raise UnsupportedSourceError(
                f"Error fetching CSV: file service returned HTTP {e.response.status_code}"
            )
        except httpx.HTTPError as e:
            logger.error("fetch.failed key=%s err=%s", key, str(e)[:200])
            raise UnsupportedSourceError(f"Error fetching CSV: {e}")

        content = response.content
        if not content:
            raise UnsupportedSourceError("File not found in storage")
        if len(content) > self.max_bytes:
            raise UnsupportedSourceError(
                f"File is too large ({len(content)} bytes, limit {self.max_bytes} bytes)"
            )

        logger.info("fetch.done key=%s bytes=%d", key, len(content))
        return content
