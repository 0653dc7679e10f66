from __future__ import annotations

import asyncio
import logging
from io import BytesIO

from fontTools.ttLib import TTFont as FontToolsTTFont
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from sprouttie.adapters.font_assets import FontAssetConfig, FontAssetProvider
from sprouttie.config import get_settings
from sprouttie.layout.script import classify
from sprouttie.types import FontKind, FontLoadState, ScriptClass


logger = logging.getLogger(__name__)

FONT_NAMES: dict[FontKind, str] = {
    FontKind.cjk: 'NotoSansSC-Regular',
    FontKind.latin: 'NotoSans-Regular',
}
DEFAULT_FONT = 'Helvetica'
DEFAULT_BOLD_FONT = 'Helvetica-Bold'


def build_font_asset_provider() -> FontAssetProvider:
    settings = get_settings()
    return FontAssetProvider(
        FontAssetConfig(
            cjk_source=settings.cjk_font_source,
            latin_source=settings.latin_font_source,
            timeout_seconds=settings.font_fetch_timeout_seconds,
        )
    )


def _is_truetype_outline_font(payload: bytes) -> bool:
    try:
        inspected = FontToolsTTFont(BytesIO(payload), lazy=True)
        return 'glyf' in inspected
    except Exception:
        return False


class FontResolver:
    """Loads the CJK and Latin-diacritic faces once and picks a face per string.

    Each font kind moves through ``absent -> loading -> loaded | failed``.
    Concurrent ``ensure_loaded`` calls share the in-flight fetch of a kind, so a
    face is requested at most once at a time. A failed kind is retried by the
    next ``ensure_loaded`` call.
    """

    def __init__(self, provider: FontAssetProvider | None = None):
        self._provider = provider
        self._states: dict[FontKind, FontLoadState] = {kind: FontLoadState.absent for kind in FontKind}
        self._errors: dict[FontKind, str] = {}
        self._inflight: dict[FontKind, asyncio.Task] = {}

    @property
    def provider(self) -> FontAssetProvider:
        if self._provider is None:
            self._provider = build_font_asset_provider()
        return self._provider

    async def ensure_loaded(self) -> None:
        await asyncio.gather(*(self._ensure_kind(kind) for kind in FontKind))

    async def _ensure_kind(self, kind: FontKind) -> None:
        if self._states[kind] == FontLoadState.loaded:
            return
        task = self._inflight.get(kind)
        if task is None or task.done():
            task = asyncio.ensure_future(self._load(kind))
            self._inflight[kind] = task
        await task

    async def _load(self, kind: FontKind) -> None:
        self._states[kind] = FontLoadState.loading
        try:
            payload = await self.provider.fetch(kind)
            self._register(kind, payload)
        except Exception as exc:
            self._states[kind] = FontLoadState.failed
            self._errors[kind] = f'{type(exc).__name__}: {exc}'
            logger.warning(
                'Failed to load %s font from %s: %s',
                kind.value,
                self.provider.source_for(kind),
                exc,
            )
            return
        finally:
            self._inflight.pop(kind, None)

        self._states[kind] = FontLoadState.loaded
        self._errors.pop(kind, None)
        logger.info('Loaded %s font as %s', kind.value, FONT_NAMES[kind])

    @staticmethod
    def _register(kind: FontKind, payload: bytes) -> None:
        font_name = FONT_NAMES[kind]
        if not _is_truetype_outline_font(payload):
            raise ValueError(f'{font_name} has no TrueType outlines; CFF/PostScript fonts cannot be embedded')
        if font_name in pdfmetrics.getRegisteredFontNames():
            return
        pdfmetrics.registerFont(TTFont(font_name, BytesIO(payload)))

    def is_ready(self, kind: FontKind) -> bool:
        return self.state(kind) == FontLoadState.loaded

    def state(self, kind: FontKind) -> FontLoadState:
        return self._states[kind]

    def status(self) -> dict[str, dict[str, str | None]]:
        return {
            kind.value: {
                'font_name': FONT_NAMES[kind],
                'state': self.state(kind).value,
                'error': self._errors.get(kind),
            }
            for kind in FontKind
        }

    def font_name_for(self, text: str, weight: str = 'normal') -> str:
        script = classify(text)
        # No bold variant is registered for either Noto face; both render at normal weight.
        if script == ScriptClass.cjk and self.is_ready(FontKind.cjk):
            return FONT_NAMES[FontKind.cjk]
        if script == ScriptClass.latin_diacritic and self.is_ready(FontKind.latin):
            return FONT_NAMES[FontKind.latin]
        return DEFAULT_BOLD_FONT if weight == 'bold' else DEFAULT_FONT

    def select_font_for(self, surface, text: str, weight: str = 'normal') -> str:
        font_name = self.font_name_for(text, weight)
        surface.set_font(font_name)
        return font_name


_RESOLVER: FontResolver | None = None


def get_font_resolver() -> FontResolver:
    global _RESOLVER
    if _RESOLVER is None:
        _RESOLVER = FontResolver()
    return _RESOLVER
