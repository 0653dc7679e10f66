from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Iterable

from sprouttie.config import get_settings
from sprouttie.types import Flashcard, SizedItem


@dataclass(frozen=True)
class FitParams:
    ceiling: int = 250
    floor: int = 40
    medium_shrink: float = 0.995
    long_shrink: float = 0.99
    short_max_len: int = 3
    medium_max_len: int = 6


def fit_params_from_settings() -> FitParams:
    settings = get_settings()
    return FitParams(
        ceiling=int(settings.fit_ceiling),
        floor=int(settings.fit_floor),
        medium_shrink=float(settings.fit_medium_shrink),
        long_shrink=float(settings.fit_long_shrink),
    )


def apply_safety_shrink(font_size: int, length: int, params: FitParams) -> int:
    if length <= params.short_max_len:
        return font_size
    if length <= params.medium_max_len:
        return math.floor(font_size * params.medium_shrink)
    return math.floor(font_size * params.long_shrink)


def compute_font_size(
    text: str,
    surface,
    max_width: float,
    *,
    params: FitParams | None = None,
    weight: str = 'bold',
) -> int:
    """Largest integer size in [floor, ceiling] at which ``text`` fits ``max_width``.

    ``surface.measure`` selects the font for ``text`` before every measurement.
    The proportional first guess can land a point or two high because glyph
    widths do not scale perfectly linearly, hence the one-point walk down.
    Only a result clamped at the floor may still overflow.
    """
    params = params or FitParams()
    if max_width <= 0:
        raise ValueError(f'max_width must be positive, got {max_width}')

    word = str(text or '')
    font_size = params.ceiling
    width = surface.measure(word, font_size, weight)

    if width > max_width:
        font_size = math.floor((max_width / width) * font_size)
        width = surface.measure(word, font_size, weight)
        while width > max_width and font_size > params.floor:
            font_size -= 1
            width = surface.measure(word, font_size, weight)

    font_size = apply_safety_shrink(font_size, len(word), params)
    return max(params.floor, font_size)


def size_flashcards(
    cards: Iterable[Flashcard],
    surface,
    max_width: float,
    *,
    params: FitParams | None = None,
    category_name: Callable[[str | None], str] | None = None,
) -> list[SizedItem]:
    sized: list[SizedItem] = []
    for card in cards:
        font_size = compute_font_size(card.display_text, surface, max_width, params=params)
        name = category_name(card.category_id) if category_name is not None else 'Unknown'
        sized.append(SizedItem(**card.model_dump(), font_size=font_size, category_name=name))
    return sized
