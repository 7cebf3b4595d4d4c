"""Fetching token metadata documents over HTTP, with an optional disk cache."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx

from rarity_checker.core.errors import UpstreamError
from rarity_checker.core.settings import Settings
from rarity_checker.services.chain import resolve_token_uri

logger = logging.getLogger(__name__)


class MetadataClient:
    """Downloads metadata JSON for a token URI.

    When ``cache_dir`` is set, documents are stored as ``<token_id>.json`` and
    later syncs read them from disk instead of the network.
    """

    def __init__(
        self,
        http: httpx.AsyncClient | None = None,
        *,
        gateway: str = "https://ipfs.io/ipfs/",
        cache_dir: Path | str | None = None,
        timeout: float = 15.0,
    ) -> None:
        self._http = http or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self._gateway = gateway
        self._cache_dir = Path(cache_dir) if cache_dir else None
        if self._cache_dir is not None:
            self._cache_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_settings(cls, config: Settings) -> MetadataClient:
        return cls(
            gateway=config.ipfs_gateway,
            cache_dir=config.metadata_cache_dir,
            timeout=config.metadata_http_timeout_seconds,
        )

    def _cache_path(self, token_id: int) -> Path | None:
        if self._cache_dir is None:
            return None
        return self._cache_dir / f"{token_id}.json"

    def _read_cache(self, token_id: int) -> dict[str, Any] | None:
        path = self._cache_path(token_id)
        if path is None or not path.exists():
            return None
        try:
            cached = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable cached metadata for token %d: %s", token_id, e)
            return None
        return cached if isinstance(cached, dict) else None

    def _write_cache(self, token_id: int, document: dict[str, Any]) -> None:
        path = self._cache_path(token_id)
        if path is None:
            return
        try:
            path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not cache metadata for token %d: %s", token_id, e)

    async def fetch(self, token_id: int, token_uri: str) -> dict[str, Any]:
        """Return the metadata document for a token.

        Raises:
            UpstreamError: If the document cannot be fetched or is not a JSON object.
        """
        cached = self._read_cache(token_id)
        if cached is not None:
            return cached

        url = resolve_token_uri(token_uri, self._gateway)
        try:
            response = await self._http.get(url)
            response.raise_for_status()
            document = response.json()
        except httpx.HTTPError as e:
            raise UpstreamError(f"Metadata fetch for token {token_id} failed: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"Metadata for token {token_id} is not valid JSON") from e

        if not isinstance(document, dict):
            raise UpstreamError(f"Metadata for token {token_id} is not a JSON object")

        self._write_cache(token_id, document)
        return document

    async def close(self) -> None:
        await self._http.aclose()
