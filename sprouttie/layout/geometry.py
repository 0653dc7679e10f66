from __future__ import annotations

from dataclasses import dataclass

from sprouttie.config import get_settings


# A4 landscape, millimetres. Origin is the top-left corner, y grows downward.
A4_LANDSCAPE_WIDTH_MM = 297.0
A4_LANDSCAPE_HEIGHT_MM = 210.0


@dataclass(frozen=True)
class PageGeometry:
    """Page layout shared by the PDF renderer and the on-screen preview."""

    width: float = A4_LANDSCAPE_WIDTH_MM
    height: float = A4_LANDSCAPE_HEIGHT_MM
    margin: float = 8.0
    back_inset: float = 20.0
    back_line_offsets: tuple[float, ...] = (0.0, 16.0, 32.0)
    divider_width: float = 0.1
    slots_per_page: int = 2

    @property
    def usable_width(self) -> float:
        return self.width - self.margin * 2

    @property
    def midline_y(self) -> float:
        return self.height / 2

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def _check_slot(self, slot: int) -> None:
        if slot < 0 or slot >= self.slots_per_page:
            raise ValueError(f'slot out of range: {slot}')

    def front_anchor(self, slot: int) -> tuple[float, float]:
        self._check_slot(slot)
        y = self.height / 4 if slot == 0 else (self.height * 3) / 4
        return self.width / 2, y

    def back_anchor(self, slot: int) -> tuple[float, float]:
        self._check_slot(slot)
        y = self.back_inset if slot == 0 else self.midline_y + self.back_inset
        return self.width - self.back_inset, y

    def divider(self) -> tuple[float, float, float, float]:
        return 0.0, self.midline_y, self.width, self.midline_y

    def fraction_x(self, x: float) -> float:
        return x / self.width

    def fraction_y(self, y: float) -> float:
        return y / self.height


def geometry_from_settings() -> PageGeometry:
    settings = get_settings()
    return PageGeometry(margin=float(settings.page_margin_mm))
