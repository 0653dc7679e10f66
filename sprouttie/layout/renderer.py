from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from sprouttie.layout.fonts import FontResolver
from sprouttie.layout.geometry import PageGeometry
from sprouttie.layout.script import is_cjk_display
from sprouttie.layout.surface import BLACK, RGB, FlashcardSurface
from sprouttie.types import Flashcard, Page


logger = logging.getLogger(__name__)

FRONT_TEXT_RGB: RGB = (1.0, 0.0, 0.0)
BACK_TEXT_RGB: RGB = BLACK
DIVIDER_RGB: RGB = BLACK
PLACEHOLDER = '—'

ENGLISH_ONLY_FONT_SIZE = 16
GLOSS_FONT_SIZE = 14
DISPLAY_FONT_SIZE = 18
TRANSLITERATION_FONT_SIZE = 14


@dataclass(frozen=True)
class BackLine:
    role: str
    value: str
    font_size: int
    weight: str = 'normal'
    label: str | None = None

    @property
    def text(self) -> str:
        if self.label:
            return f'{self.label}: {self.value}'
        return self.value


def is_english_only(item: Flashcard) -> bool:
    gloss = str(item.gloss_text or '').strip()
    display = str(item.display_text or '').strip()
    return bool(gloss) and not is_cjk_display(display)


def back_lines(item: Flashcard) -> list[BackLine]:
    display = str(item.display_text or '').strip()
    gloss = str(item.gloss_text or '').strip()
    transliteration = str(item.transliteration_text or '').strip()

    if is_english_only(item):
        return [BackLine(role='gloss', value=gloss, font_size=ENGLISH_ONLY_FONT_SIZE, weight='bold')]

    return [
        BackLine(
            role='gloss',
            value=gloss or PLACEHOLDER,
            font_size=GLOSS_FONT_SIZE,
            weight='bold',
            label='English',
        ),
        BackLine(
            role='display',
            value=display or PLACEHOLDER,
            font_size=DISPLAY_FONT_SIZE,
            label='中文',
        ),
        BackLine(
            role='transliteration',
            value=transliteration or PLACEHOLDER,
            font_size=TRANSLITERATION_FONT_SIZE,
            label='Pinyin',
        ),
    ]


def _draw_divider(surface: FlashcardSurface, page: Page) -> None:
    if len(page) < 2:
        return
    geometry = surface.geometry
    x1, y1, x2, y2 = geometry.divider()
    surface.draw_line(x1, y1, x2, y2, width=geometry.divider_width, rgb=DIVIDER_RGB)


def render_front_page(surface: FlashcardSurface, page: Page) -> None:
    geometry = surface.geometry
    surface.set_text_color(FRONT_TEXT_RGB)
    for slot, item in enumerate(page):
        x, y = geometry.front_anchor(slot)
        surface.place_text(
            item.display_text,
            x,
            y,
            font_size=item.font_size,
            weight='bold',
            align='center',
            baseline='middle',
        )
    _draw_divider(surface, page)


def render_back_page(surface: FlashcardSurface, page: Page) -> None:
    # Back text is not width checked; long glosses can run past the left edge.
    # The 中文 label is CJK, so its line falls back to Helvetica (no glyphs for the
    # label) until the CJK face has loaded, even when the card itself is Latin.
    geometry = surface.geometry
    surface.set_text_color(BACK_TEXT_RGB)
    for slot, item in enumerate(page):
        x_right, base_y = geometry.back_anchor(slot)
        for offset, line in zip(geometry.back_line_offsets, back_lines(item)):
            surface.place_text(
                line.text,
                x_right,
                base_y + offset,
                font_size=line.font_size,
                weight=line.weight,
                align='right',
            )
    _draw_divider(surface, page)


def render_document(surface: FlashcardSurface, pages: Sequence[Page], include_back_pages: bool) -> int:
    """Draw all front pages, then one back page per front page when requested.

    Returns the number of pages on the surface.
    """
    if not pages:
        raise ValueError('no pages to render')

    for index, page in enumerate(pages):
        if index > 0:
            surface.new_page()
        render_front_page(surface, page)

    if include_back_pages:
        for page in pages:
            surface.new_page()
            render_back_page(surface, page)

    return surface.page_count


def build_document(
    pages: Sequence[Page],
    *,
    include_back_pages: bool,
    resolver: FontResolver,
    geometry: PageGeometry,
    title: str = 'Sprouttie Flashcards',
) -> bytes:
    """Render into an in-memory PDF; nothing is returned unless every page drew."""
    surface = FlashcardSurface.in_memory(resolver, geometry, title=title)
    page_total = render_document(surface, pages, include_back_pages)
    payload = surface.finish()
    logger.debug('Rendered %d pages (%d bytes)', page_total, len(payload))
    return payload
