from __future__ import annotations

from typing import Sequence, TypeVar


T = TypeVar('T')

ITEMS_PER_PAGE = 2


def paginate(items: Sequence[T], per_page: int = ITEMS_PER_PAGE) -> list[tuple[T, ...]]:
    """Group consecutive items into pages, keeping their order.

    Filtering happens before this step; every item lands on exactly one page
    and only the last page may be short.
    """
    if per_page <= 0:
        raise ValueError(f'per_page must be positive, got {per_page}')
    return [tuple(items[start:start + per_page]) for start in range(0, len(items), per_page)]

