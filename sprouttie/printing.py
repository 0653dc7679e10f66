from __future__ import annotations

import logging
import traceback
from pathlib import Path
from typing import Iterable

from sprouttie.adapters.card_store import CardStore
from sprouttie.config import get_settings
from sprouttie.errors import (
    EmptySelectionError,
    FontsNotReadyError,
    LayoutError,
    PreviewMissingError,
    PrintError,
)
from sprouttie.layout.fonts import FontResolver, get_font_resolver
from sprouttie.layout.geometry import PageGeometry, geometry_from_settings
from sprouttie.layout.pagination import paginate
from sprouttie.layout.preview import PreviewDocument, PreviewParams, preview_params_from_settings, project
from sprouttie.layout.renderer import build_document
from sprouttie.layout.script import contains_chinese
from sprouttie.layout.sizing import FitParams, fit_params_from_settings, size_flashcards
from sprouttie.layout.surface import measuring_surface
from sprouttie.storage import append_event, exports_root, write_bytes_atomic
from sprouttie.types import FontKind, Page, PreviewSide, PrintJob, PrintOutcome


logger = logging.getLogger(__name__)

PREVIEW_FAILED_MESSAGE = 'Error generating preview. Please try again.'


def _error_detail(exc: BaseException) -> str:
    return ''.join(traceback.format_exception_only(type(exc), exc)).strip()


class PrintSession:
    """One user's print workflow: select, generate a preview, download.

    Pages are rebuilt from scratch by every ``generate_preview`` call and are
    replaced only when the new build succeeds.
    """

    def __init__(
        self,
        store: CardStore,
        *,
        resolver: FontResolver | None = None,
        geometry: PageGeometry | None = None,
        fit_params: FitParams | None = None,
        preview_params: PreviewParams | None = None,
    ):
        self.store = store
        self.resolver = resolver or get_font_resolver()
        self.geometry = geometry or geometry_from_settings()
        self.fit_params = fit_params or fit_params_from_settings()
        self.preview_params = preview_params or preview_params_from_settings()
        self.job: PrintJob | None = None
        self.pages: list[Page] = []
        self._pages_job: PrintJob | None = None

    def select(
        self,
        item_ids: Iterable[str],
        *,
        include_back_pages: bool = False,
        preview_side: PreviewSide = PreviewSide.front,
    ) -> PrintJob:
        self.job = PrintJob(
            item_ids=[str(item_id) for item_id in item_ids],
            include_back_pages=include_back_pages,
            preview_side=preview_side,
        )
        return self.job

    def select_sets(self, set_ids: Iterable[str], **options) -> PrintJob:
        return self.select(self.store.ids_for_sets(set_ids), **options)

    def set_preview_side(self, side: PreviewSide) -> None:
        if self.job is None:
            raise EmptySelectionError()
        self.job.preview_side = PreviewSide(side)

    def _build_pages(self) -> list[Page]:
        job = self.job
        if job is None or not job.item_ids:
            raise EmptySelectionError()

        cards = self.store.resolve(job.item_ids)
        if not cards:
            raise EmptySelectionError('none of the selected flashcards exist')

        # Measuring Chinese with the fallback face would store wrong sizes.
        if any(contains_chinese(card.display_text) for card in cards) and not self.resolver.is_ready(FontKind.cjk):
            raise FontsNotReadyError('CJK font not loaded')

        try:
            surface = measuring_surface(self.resolver, self.geometry)
            sized = size_flashcards(
                cards,
                surface,
                self.geometry.usable_width,
                params=self.fit_params,
                category_name=self.store.category_name,
            )
        except Exception as exc:
            raise LayoutError(_error_detail(exc), user_message=PREVIEW_FAILED_MESSAGE) from exc
        return paginate(sized)

    def generate_preview(self) -> PrintOutcome:
        try:
            pages = self._build_pages()
        except (EmptySelectionError, FontsNotReadyError) as exc:
            logger.warning('Preview not generated: %s', exc)
            append_event('preview_blocked', reason=type(exc).__name__, message=exc.user_message)
            return PrintOutcome(ok=False, message=exc.user_message)
        except PrintError as exc:
            logger.error('Error generating preview: %s', exc, exc_info=True)
            append_event('preview_failed', error=str(exc))
            return PrintOutcome(ok=False, message=exc.user_message)

        self.pages = pages
        self._pages_job = self.job
        document = self.preview()
        append_event(
            'preview_generated',
            flashcards=document.flashcard_count,
            pages=document.page_count,
            include_back_pages=bool(self.job and self.job.include_back_pages),
        )
        return PrintOutcome(
            ok=True,
            message=f'Preview ready: {document.flashcard_count} flashcards on {document.page_count} pages.',
            flashcard_count=document.flashcard_count,
            page_count=document.page_count,
            notes=document.notes,
        )

    def preview(self, side: PreviewSide | None = None) -> PreviewDocument:
        if not self.pages:
            raise PreviewMissingError()
        if side is None:
            side = self.job.preview_side if self.job is not None else PreviewSide.front
        return project(self.pages, side, self.geometry, self.preview_params)

    def render(self) -> bytes:
        # Pages built for an earlier selection are never exported under a newer one.
        if not self.pages or self._pages_job is not self.job:
            raise PreviewMissingError()
        include_back = bool(self.job and self.job.include_back_pages)
        try:
            return build_document(
                self.pages,
                include_back_pages=include_back,
                resolver=self.resolver,
                geometry=self.geometry,
                title=get_settings().app_name,
            )
        except Exception as exc:
            raise LayoutError(_error_detail(exc)) from exc

    def download(self, output_path: Path | None = None) -> PrintOutcome:
        target = output_path or (exports_root() / get_settings().output_filename)
        try:
            pdf_bytes = self.render()
            write_bytes_atomic(target, pdf_bytes)
        except PreviewMissingError as exc:
            return PrintOutcome(ok=False, message=exc.user_message)
        except PrintError as exc:
            logger.error('Error generating PDF: %s', exc, exc_info=True)
            append_event('pdf_failed', error=str(exc))
            return PrintOutcome(ok=False, message=exc.user_message)
        except OSError as exc:
            logger.error('Error writing PDF to %s: %s', target, exc)
            append_event('pdf_failed', error=_error_detail(exc), output_path=str(target))
            return PrintOutcome(ok=False, message=LayoutError.user_message)

        include_back = bool(self.job and self.job.include_back_pages)
        front_pages = len(self.pages)
        page_count = front_pages * 2 if include_back else front_pages
        flashcard_count = sum(len(page) for page in self.pages)
        append_event(
            'pdf_exported',
            output_path=str(target),
            pages=page_count,
            flashcards=flashcard_count,
            size_bytes=len(pdf_bytes),
        )
        return PrintOutcome(
            ok=True,
            message=f'PDF generated successfully! Saved to {target}',
            flashcard_count=flashcard_count,
            page_count=page_count,
            output_path=str(target),
        )
