from __future__ import annotations

from io import BytesIO

from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen.canvas import Canvas

from sprouttie.layout.fonts import DEFAULT_FONT, FontResolver
from sprouttie.layout.geometry import PageGeometry


RGB = tuple[float, float, float]

BLACK: RGB = (0.0, 0.0, 0.0)


class FlashcardSurface:
    """reportlab canvas seen through page millimetres with a top-left origin.

    Font selection is mutable state on the surface, so ``measure`` and
    ``place_text`` both reselect the font for the exact string they handle.
    """

    def __init__(
        self,
        canvas: Canvas,
        resolver: FontResolver,
        geometry: PageGeometry,
        buffer: BytesIO | None = None,
    ):
        self._canvas = canvas
        self._resolver = resolver
        self.geometry = geometry
        self._buffer = buffer
        self._font_name = DEFAULT_FONT
        self._text_rgb: RGB = BLACK
        self._page_count = 1

    @classmethod
    def in_memory(
        cls,
        resolver: FontResolver,
        geometry: PageGeometry,
        *,
        title: str | None = None,
    ) -> FlashcardSurface:
        buffer = BytesIO()
        canvas = Canvas(buffer, pagesize=(geometry.width * mm, geometry.height * mm))
        if title:
            canvas.setTitle(title)
        return cls(canvas, resolver, geometry, buffer)

    @property
    def font_name(self) -> str:
        return self._font_name

    @property
    def page_count(self) -> int:
        return self._page_count

    def set_font(self, font_name: str) -> None:
        self._font_name = font_name

    def set_text_color(self, rgb: RGB) -> None:
        self._text_rgb = rgb

    def _to_pdf_y(self, y: float) -> float:
        return (self.geometry.height - y) * mm

    def measure(self, text: str, font_size: float, weight: str = 'normal') -> float:
        """Rendered width of ``text`` in millimetres."""
        text_value = str(text or '')
        self._resolver.select_font_for(self, text_value, weight)
        if not text_value:
            return 0.0
        return pdfmetrics.stringWidth(text_value, self._font_name, font_size) / mm

    def place_text(
        self,
        text: str,
        x: float,
        y: float,
        *,
        font_size: float,
        weight: str = 'normal',
        align: str = 'left',
        baseline: str = 'alphabetic',
    ) -> None:
        text_value = str(text or '')
        self._resolver.select_font_for(self, text_value, weight)
        self._canvas.setFont(self._font_name, font_size)
        self._canvas.setFillColorRGB(*self._text_rgb)

        pdf_x = x * mm
        pdf_y = self._to_pdf_y(y)
        if baseline == 'middle':
            ascent, descent = pdfmetrics.getAscentDescent(self._font_name, font_size)
            pdf_y -= (ascent + descent) / 2
        elif baseline != 'alphabetic':
            raise ValueError(f'unsupported baseline: {baseline}')

        if align == 'center':
            self._canvas.drawCentredString(pdf_x, pdf_y, text_value)
        elif align == 'right':
            self._canvas.drawRightString(pdf_x, pdf_y, text_value)
        elif align == 'left':
            self._canvas.drawString(pdf_x, pdf_y, text_value)
        else:
            raise ValueError(f'unsupported alignment: {align}')

    def draw_line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        *,
        width: float,
        rgb: RGB = BLACK,
    ) -> None:
        self._canvas.setStrokeColorRGB(*rgb)
        self._canvas.setLineWidth(width * mm)
        self._canvas.line(x1 * mm, self._to_pdf_y(y1), x2 * mm, self._to_pdf_y(y2))

    def new_page(self) -> None:
        self._canvas.showPage()
        self._page_count += 1

    def finish(self) -> bytes:
        if self._buffer is None:
            raise RuntimeError('surface was not created in memory')
        self._canvas.save()
        return self._buffer.getvalue()


def measuring_surface(resolver: FontResolver, geometry: PageGeometry) -> FlashcardSurface:
    """Throwaway surface used only for width measurement."""
    return FlashcardSurface.in_memory(resolver, geometry)
