from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

import httpx

from sprouttie.types import FontKind


@dataclass
class FontAssetConfig:
    cjk_source: str
    latin_source: str
    timeout_seconds: int


class FontAssetProvider:
    """Fetches raw font programs over HTTP GET or from local files."""

    def __init__(self, cfg: FontAssetConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        self.cfg = cfg
        self._transport = transport

    def source_for(self, kind: FontKind) -> str:
        if kind == FontKind.cjk:
            return self.cfg.cjk_source
        return self.cfg.latin_source

    async def fetch(self, kind: FontKind) -> bytes:
        source = str(self.source_for(kind) or '').strip()
        if not source:
            raise RuntimeError(f'No font source configured for {kind.value}')

        if source.startswith(('http://', 'https://')):
            payload = await self._fetch_remote(source)
        else:
            payload = await asyncio.to_thread(self._read_local, Path(source).expanduser())

        if not payload:
            raise RuntimeError(f'Font source returned an empty payload: {source}')
        return payload

    async def _fetch_remote(self, url: str) -> bytes:
        timeout = max(5, int(self.cfg.timeout_seconds))
        async with httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.content

    @staticmethod
    def _read_local(path: Path) -> bytes:
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f'Font file not found: {path}')
        return path.read_bytes()
