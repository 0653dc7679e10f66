from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Sequence

from pydantic import BaseModel, Field

from sprouttie.config import get_settings
from sprouttie.layout.geometry import PageGeometry
from sprouttie.layout.renderer import BACK_TEXT_RGB, FRONT_TEXT_RGB, back_lines
from sprouttie.layout.surface import RGB
from sprouttie.types import Page, PreviewSide


ODD_SELECTION_NOTE = 'For optimal printing, select an even number of flashcards.'

# Back preview text sizes in CSS pixels (small / large / small).
BACK_PREVIEW_FONT_PX = {
    'gloss': 14.0,
    'display': 20.0,
    'transliteration': 14.0,
}


@dataclass(frozen=True)
class PreviewParams:
    scale_down: float = 3.0
    max_font_px: float = 100.0
    max_height_px: int = 400


def preview_params_from_settings() -> PreviewParams:
    settings = get_settings()
    return PreviewParams(
        scale_down=float(settings.preview_scale_down),
        max_font_px=float(settings.preview_max_font_px),
        max_height_px=int(settings.preview_max_height_px),
    )


class PreviewLine(BaseModel):
    role: str
    text: str
    font_px: float
    color: str
    bold: bool = False


class PreviewSlot(BaseModel):
    slot: int
    half: str
    anchor: str
    x_pct: float
    y_pct: float
    margin: str | None = None
    lines: list[PreviewLine] = Field(default_factory=list)


class PreviewPage(BaseModel):
    number: int
    side: PreviewSide
    aspect_ratio: float
    max_height_px: int
    divider: bool
    divider_y_pct: float
    badge: str | None = None
    slots: list[PreviewSlot] = Field(default_factory=list)


class PreviewDocument(BaseModel):
    side: PreviewSide
    flashcard_count: int
    page_count: int
    notes: list[str] = Field(default_factory=list)
    pages: list[PreviewPage] = Field(default_factory=list)


def rgb_to_hex(rgb: RGB) -> str:
    return '#' + ''.join(f'{round(max(0.0, min(1.0, part)) * 255):02x}' for part in rgb)


def preview_font_px(font_size: int, params: PreviewParams) -> float:
    return min(font_size / params.scale_down, params.max_font_px)


def _front_slots(page: Page, geometry: PageGeometry, params: PreviewParams) -> list[PreviewSlot]:
    slots: list[PreviewSlot] = []
    for slot, item in enumerate(page):
        x, y = geometry.front_anchor(slot)
        slots.append(
            PreviewSlot(
                slot=slot,
                half='top' if slot == 0 else 'bottom',
                anchor='center',
                x_pct=geometry.fraction_x(x) * 100,
                y_pct=geometry.fraction_y(y) * 100,
                margin=f'0 {geometry.margin:g}mm',
                lines=[
                    PreviewLine(
                        role='display',
                        text=item.display_text,
                        font_px=preview_font_px(item.font_size, params),
                        color=rgb_to_hex(FRONT_TEXT_RGB),
                        bold=True,
                    )
                ],
            )
        )
    return slots


def _back_slots(page: Page, geometry: PageGeometry) -> list[PreviewSlot]:
    slots: list[PreviewSlot] = []
    for slot, item in enumerate(page):
        x, y = geometry.back_anchor(slot)
        lines: list[PreviewLine] = []
        for line in back_lines(item):
            # The display word stands on its own on screen; the PDF labels it.
            text = line.value if line.role == 'display' else line.text
            lines.append(
                PreviewLine(
                    role=line.role,
                    text=text,
                    font_px=BACK_PREVIEW_FONT_PX.get(line.role, 14.0),
                    color=rgb_to_hex(BACK_TEXT_RGB),
                    bold=line.weight == 'bold',
                )
            )
        slots.append(
            PreviewSlot(
                slot=slot,
                half='top' if slot == 0 else 'bottom',
                anchor='top-right',
                x_pct=geometry.fraction_x(x) * 100,
                y_pct=geometry.fraction_y(y) * 100,
                lines=lines,
            )
        )
    return slots


def project(
    pages: Sequence[Page],
    side: PreviewSide,
    geometry: PageGeometry,
    params: PreviewParams | None = None,
) -> PreviewDocument:
    """Project already-sized pages onto the preview tree. Never re-sizes."""
    params = params or PreviewParams()
    side = PreviewSide(side)
    flashcard_count = sum(len(page) for page in pages)

    notes: list[str] = []
    if flashcard_count % 2 != 0:
        notes.append(ODD_SELECTION_NOTE)
    notes.append(f'Total pages: {len(pages)}')

    preview_pages: list[PreviewPage] = []
    for index, page in enumerate(pages):
        if side == PreviewSide.front:
            slots = _front_slots(page, geometry, params)
            badge = None
        else:
            slots = _back_slots(page, geometry)
            badge = f'Page {index + 1}'
        preview_pages.append(
            PreviewPage(
                number=index + 1,
                side=side,
                aspect_ratio=round(geometry.aspect_ratio, 3),
                max_height_px=params.max_height_px,
                divider=len(page) > 1,
                divider_y_pct=geometry.fraction_y(geometry.midline_y) * 100,
                badge=badge,
                slots=slots,
            )
        )

    return PreviewDocument(
        side=side,
        flashcard_count=flashcard_count,
        page_count=len(pages),
        notes=notes,
        pages=preview_pages,
    )


_PREVIEW_CSS = """
body { font-family: Helvetica, Arial, sans-serif; margin: 24px; color: #111827; }
.page { position: relative; margin: 0 auto 16px auto; width: 100%; max-width: 896px;
        background: #ffffff; border: 1px solid #d1d5db; box-shadow: 0 2px 6px rgba(0, 0, 0, 0.15);
        overflow: hidden; }
.divider { position: absolute; left: 0; width: 100%; height: 1px; background: #d1d5db; }
.slot { position: absolute; white-space: nowrap; }
.slot.center { transform: translate(-50%, -50%); text-align: center; }
.slot.top-right { text-align: right; }
.line { line-height: 1; }
.badge { position: absolute; top: 8px; right: 8px; background: #f3f4f6; color: #374151;
         font-size: 12px; padding: 4px 8px; }
.notes { font-size: 14px; color: #4b5563; }
"""


def _style(**rules: object) -> str:
    return '; '.join(f"{key.replace('_', '-')}: {value}" for key, value in rules.items() if value is not None)


def _render_slot(slot: PreviewSlot) -> str:
    if slot.anchor == 'center':
        position = _style(left=f'{slot.x_pct:.3f}%', top=f'{slot.y_pct:.3f}%')
    else:
        position = _style(right=f'{100 - slot.x_pct:.3f}%', top=f'{slot.y_pct:.3f}%')

    lines = []
    for line in slot.lines:
        style = _style(
            font_size=f'{line.font_px:.2f}px',
            color=line.color,
            font_weight='bold' if line.bold else 'normal',
            margin=slot.margin,
        )
        lines.append(f'<div class="line" style="{html.escape(style, quote=True)}">{html.escape(line.text)}</div>')
    return f'<div class="slot {slot.anchor}" style="{position}">{"".join(lines)}</div>'


def render_preview_html(document: PreviewDocument, *, title: str = 'Sprouttie print preview') -> str:
    parts = [
        '<!DOCTYPE html>',
        '<html lang="en">',
        '<head>',
        '<meta charset="utf-8">',
        f'<title>{html.escape(title)}</title>',
        f'<style>{_PREVIEW_CSS}</style>',
        '</head>',
        '<body>',
        f'<h3>Print Preview of selected words ({document.flashcard_count} flashcards)</h3>',
    ]
    for page in document.pages:
        page_style = _style(aspect_ratio=f'{page.aspect_ratio}', max_height=f'{page.max_height_px}px')
        parts.append(f'<div class="page {page.side.value}" style="{page_style}">')
        if page.divider:
            parts.append(f'<div class="divider" style="top: {page.divider_y_pct:.3f}%"></div>')
        for slot in page.slots:
            parts.append(_render_slot(slot))
        if page.badge:
            parts.append(f'<div class="badge">{html.escape(page.badge)}</div>')
        parts.append('</div>')

    parts.append('<ul class="notes">')
    for note in document.notes:
        parts.append(f'<li>{html.escape(note)}</li>')
    parts.append('</ul>')
    parts.extend(['</body>', '</html>'])
    return '\n'.join(parts)
