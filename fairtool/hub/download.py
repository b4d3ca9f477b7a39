"""Artifact downloads with retry and optional fragment hash checks."""

from __future__ import annotations

import hashlib
import time
from pathlib import Path
from typing import Callable, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import unquote, urldefrag, urlparse
from urllib.request import Request, urlopen

from .errors import HubError, HubHTTPError, HubTransportError
from .retry import RetryPolicy, retrying
from ..logging import get_logger

_LOGGER = get_logger("hub.download")

Fetcher = Callable[[str, float], "tuple[int, bytes]"]


class DownloadHashMismatch(HubError):
    def __init__(self, url: str, expected: str, actual: str) -> None:
        super().__init__(f"Hash mismatch for {url}: {expected} vs. {actual}")
        self.url = url
        self.expected = expected
        self.actual = actual


class ArtifactDownloader:
    """Downloads artifacts to local files.

    ``destination`` is a file path, or an existing directory that receives a
    file named after the URL. A SHA-256 carried in the URL fragment (``...zip#<hex>``) is verified when
    ``validate_fragment_hash`` is enabled.
    """

    def __init__(
        self,
        retry: RetryPolicy | None = None,
        *,
        timeout: float = 300.0,
        fetcher: Fetcher | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.retry = retry or RetryPolicy()
        self.timeout = timeout
        self._fetcher = fetcher or _urllib_fetch
        self._sleep = sleep
        self._clock = clock

    def fetch(
        self,
        url: str,
        destination: Path,
        *,
        validate_fragment_hash: bool = True,
    ) -> Path:
        location, fragment = urldefrag(url)
        data = retrying(
            lambda: self._download(location),
            self.retry,
            should_retry=lambda exc: isinstance(exc, HubError) and bool(exc.retryable),
            sleep=self._sleep,
            clock=self._clock,
        )

        if validate_fragment_hash and fragment:
            actual = hashlib.sha256(data).hexdigest()
            if actual.lower() != fragment.lower():
                raise DownloadHashMismatch(url, fragment, actual)

        target = Path(destination)
        if target.is_dir():
            target = target / artifact_name(location)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        _LOGGER.info("Downloaded %s (%d bytes) to %s", location, len(data), target)
        return target

    def _download(self, url: str) -> bytes:
        status, body = self._fetcher(url, self.timeout)
        if not 200 <= status < 300:
            raise HubHTTPError(status, url)
        return body


def artifact_name(url: str) -> str:
    """Last path component of ``url``, used as the local file name."""
    return unquote(urlparse(urldefrag(url)[0]).path.rstrip("/").rpartition("/")[2]) or "artifact"


def _urllib_fetch(url: str, timeout: float) -> "tuple[int, bytes]":
    try:
        with urlopen(Request(url), timeout=timeout) as response:  # type: ignore[arg-type]
            return response.status, response.read()
    except HTTPError as exc:  # pragma: no cover - depends on network
        return exc.code, b""
    except (URLError, TimeoutError, OSError) as exc:  # pragma: no cover - depends on network
        raise HubTransportError(url, str(getattr(exc, "reason", exc))) from exc


__all__ = ["ArtifactDownloader", "DownloadHashMismatch", "Fetcher", "artifact_name"]
