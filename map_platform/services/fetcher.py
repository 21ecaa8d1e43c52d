"""Stream remote assets to disk."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional
from urllib import error as urllib_error
from urllib import parse as urllib_parse
from urllib import request as urllib_request

logger = logging.getLogger(__name__)


class _HTTPClient:
    """Small wrapper around :func:`urllib.request.urlopen` with headers."""

    _DEFAULT_HEADERS = {"User-Agent": "MapPlatformExport/1.0"}

    def open(self, url: str, timeout: int) -> BinaryIO:
        request = urllib_request.Request(url, headers=self._DEFAULT_HEADERS)
        return urllib_request.urlopen(request, timeout=timeout)


@dataclass(slots=True)
class DownloadResult:
    """Outcome of a single download; failures carry the reason."""

    url: str
    path: Path | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.path is not None and self.error is None


class AssetFetcher:
    """Download remote files without holding them in memory."""

    def __init__(
        self,
        http_client: Optional[_HTTPClient] = None,
        *,
        timeout: int = 30,
        chunk_size: int = 64 * 1024,
        base_url: str | None = None,
    ):
        self.http_client = http_client or _HTTPClient()
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.base_url = base_url

    def resolve(self, url: str) -> str | None:
        """Return an absolute http(s) URL for ``url`` or ``None``."""

        scheme = urllib_parse.urlsplit(url).scheme.lower()
        if scheme in ("http", "https"):
            return url
        if not scheme and self.base_url:
            return urllib_parse.urljoin(self.base_url.rstrip("/") + "/", url)
        return None

    def download(self, url: str, dest: Path | str) -> DownloadResult:
        dest = Path(dest)
        absolute = self.resolve(url)
        if absolute is None:
            logger.warning("Cannot download non-http asset %s", url)
            return DownloadResult(url=url, error="unsupported URL")

        partial = dest.with_name(dest.name + ".part")
        try:
            with self.http_client.open(absolute, self.timeout) as response, partial.open("wb") as handle:
                shutil.copyfileobj(response, handle, self.chunk_size)
            os.replace(partial, dest)
        except (urllib_error.URLError, TimeoutError, OSError, ValueError) as exc:
            logger.warning("Download of %s failed: %s", absolute, exc)
            partial.unlink(missing_ok=True)
            return DownloadResult(url=url, error=str(exc) or type(exc).__name__)

        logger.debug("Downloaded %s to %s", absolute, dest)
        return DownloadResult(url=url, path=dest)
