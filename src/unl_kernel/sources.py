"""
Document sources and the validator manifest list reader.

Sources are injected into the commands so tests can substitute fakes.
Every failure surfaces as ``SourceUnavailable``; there is no retry.
"""

import asyncio
import logging
from pathlib import Path
from typing import Protocol
from urllib.parse import urlparse

import httpx

from .config import Settings, get_settings
from .document import ListDocument, parse_document
from .errors import SourceUnavailable

logger = logging.getLogger(__name__)


class DocumentSource(Protocol):
    async def fetch(self, location: str) -> str:
        ...


class FileDocumentSource:
    """Reads a document from the local filesystem off the event loop."""

    async def fetch(self, location: str) -> str:
        path = Path(location)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceUnavailable(
                f"Could not read {location}: {exc}",
                {"location": location},
            )


class HttpDocumentSource:
    """Fetches a document over HTTP(S) with ``httpx``."""

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        self.settings = settings or get_settings()
        self.client = client

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.http_timeout_seconds),
            follow_redirects=True,
            headers={
                "User-Agent": self.settings.user_agent,
                "Accept": "application/json",
            },
        )

    async def fetch(self, location: str) -> str:
        try:
            if self.client is not None:
                response = await self.client.get(location)
            else:
                async with self._build_client() as client:
                    response = await client.get(location)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SourceUnavailable(
                f"Could not fetch {location}: {exc}",
                {"location": location},
            )
        logger.debug("fetched %s (%d bytes)", location, len(response.content))
        return response.text


class AutoDocumentSource:
    """Dispatches ``http(s)://`` locations to HTTP and everything else to files."""

    def __init__(self, settings: Settings | None = None):
        self.http = HttpDocumentSource(settings)
        self.file = FileDocumentSource()

    async def fetch(self, location: str) -> str:
        if urlparse(location).scheme in ("http", "https"):
            return await self.http.fetch(location)
        return await self.file.fetch(location)


async def load_document(location: str, source: DocumentSource | None = None) -> ListDocument:
    """
    Fetch and parse a list document.

    Raises:
        SourceUnavailable: If the location cannot be read
        DecodeError / UnsupportedVersion: If the payload is not a document
    """
    source = source or AutoDocumentSource()
    text = await source.fetch(location)
    return parse_document(text)


def read_manifests(text: str) -> list[str]:
    """One manifest per line; blank lines and ``#`` comments are ignored."""
    manifests = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        manifests.append(line)
    return manifests


def read_manifests_file(path: str | Path) -> list[str]:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceUnavailable(f"Could not read manifests from {path}: {exc}", {"location": str(path)})
    return read_manifests(text)
