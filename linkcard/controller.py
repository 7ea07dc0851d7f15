"""Application controller owning the current card and generation status."""

import logging
from dataclasses import dataclass
from typing import Any

from linkcard.errors import ExportError, InvalidURLError
from linkcard.errors.logger import ErrorCategory, StructuredLogger
from linkcard.models.card import (
    VIEWPORTS,
    CardRecord,
    CardTheme,
    ColorScheme,
    GenerationStatus,
    GenerationStep,
    ViewportProfile,
    get_viewport,
)
from linkcard.pipeline.assembler import CardAssembler
from linkcard.render.export import (
    DOWNLOAD_OPTIONS,
    PREVIEW_OPTIONS,
    ExportFormat,
    ExportOptions,
    ImageExporter,
)
from linkcard.render.social import render_meta_tags
from linkcard.render.surface import CardSurface, RenderedNode

logger = logging.getLogger(__name__)

INVALID_URL_MESSAGE = "Please enter a valid website URL."
GENERATION_FAILED_MESSAGE = "Failed to generate card. Please try again."


@dataclass(frozen=True)
class AppState:
    """Immutable snapshot of everything the presentation layer shows."""

    record: CardRecord | None
    status: GenerationStatus
    viewport: ViewportProfile
    color_scheme: ColorScheme
    theme: CardTheme


@dataclass(frozen=True)
class SocialPreview:
    """Preview snapshot plus the meta tags to paste into a page."""

    image: str
    meta_tags: str


class CardController:
    """Drive generation and export for a single current card.

    Overlapping ``generate`` calls are sequenced: only the most recently started
    generation may publish its record and status.
    """

    def __init__(
        self,
        assembler: CardAssembler,
        surface: CardSurface,
        exporter: ImageExporter,
        error_logger: StructuredLogger | None = None,
        download_options: ExportOptions = DOWNLOAD_OPTIONS,
        preview_options: ExportOptions = PREVIEW_OPTIONS,
    ) -> None:
        self.assembler = assembler
        self.surface = surface
        self.exporter = exporter
        self.error_logger = error_logger
        self.download_options = download_options
        self.preview_options = preview_options

        self._record: CardRecord | None = None
        self._status = GenerationStatus()
        self._viewport = VIEWPORTS[0]
        self._color_scheme = ColorScheme.LIGHT
        self._theme = CardTheme.LIGHT
        self._generation = 0

    @property
    def state(self) -> AppState:
        return AppState(
            record=self._record,
            status=self._status,
            viewport=self._viewport,
            color_scheme=self._color_scheme,
            theme=self._theme,
        )

    def select_viewport(self, viewport_id: str) -> None:
        self._viewport = get_viewport(viewport_id)

    def set_color_scheme(self, color_scheme: ColorScheme) -> None:
        self._color_scheme = color_scheme

    def toggle_color_scheme(self) -> None:
        self._color_scheme = self._color_scheme.toggled()

    def set_theme(self, theme: CardTheme) -> None:
        self._theme = theme

    def toggle_theme(self) -> None:
        self._theme = self._theme.toggled()

    async def generate(self, raw: str) -> CardRecord | None:
        """Generate a card from user input and publish it.

        Returns:
            The new record, or None if input was empty, generation failed, or a
            newer generation started meanwhile. On failure the previous record
            stays published.
        """
        if not raw.strip():
            return None

        self._generation += 1
        generation = self._generation
        self._status = GenerationStatus(
            step=GenerationStep.FETCHING_METADATA, message="Analyzing URL..."
        )

        try:
            record = await self.assembler.assemble(raw, self._viewport, self._color_scheme)
        except InvalidURLError as e:
            return self._fail(generation, e, ErrorCategory.INPUT, INVALID_URL_MESSAGE, raw)
        except Exception as e:
            logger.exception("Unexpected error during card generation")
            return self._fail(generation, e, ErrorCategory.SYSTEM, GENERATION_FAILED_MESSAGE, raw)

        if generation != self._generation:
            logger.info(f"Discarding card for {record.url}: superseded by a newer generation")
            return None

        self._record = record
        self.surface.present(record)
        self._status = GenerationStatus(step=GenerationStep.COMPLETED)
        logger.info(f"Card ready for {record.url}")
        return record

    def _fail(
        self,
        generation: int,
        error: Exception,
        category: ErrorCategory,
        message: str,
        raw: str,
    ) -> None:
        self._log_error(error, category, "generate", url=raw, generation=generation)
        if generation == self._generation:
            self._status = GenerationStatus(step=GenerationStep.ERROR, message=message)
        return None

    async def download(self, fmt: ExportFormat = ExportFormat.PNG) -> str:
        """Capture the current card at download quality.

        Raises:
            ExportError: If both capture attempts failed
        """
        node = await self._render_current()
        try:
            return await self.exporter.capture(node, self.download_options, fmt)
        except ExportError as e:
            self._log_export_error(e, "download", fmt, self.download_options)
            raise

    async def social_preview(self) -> SocialPreview:
        """Capture a lighter preview snapshot and build the meta tags.

        Raises:
            ExportError: If both capture attempts failed
        """
        record = self._require_record()
        node = await self._render_current()
        try:
            image = await self.exporter.capture(node, self.preview_options, ExportFormat.PNG)
        except ExportError as e:
            self._log_export_error(e, "social_preview", ExportFormat.PNG, self.preview_options)
            raise
        return SocialPreview(image=image, meta_tags=render_meta_tags(record))

    def export_filename(self, fmt: ExportFormat) -> str:
        record = self._require_record()
        return f"smart-card-{record.domain}-{self._theme.value}.{fmt.value}"

    def _require_record(self) -> CardRecord:
        if self._record is None:
            raise RuntimeError("No card has been generated")
        return self._record

    async def _render_current(self) -> RenderedNode:
        self._require_record()
        await self.surface.load_screenshot()
        return self.surface.render(self._theme)

    def _log_export_error(
        self, error: ExportError, component: str, fmt: ExportFormat, options: ExportOptions
    ) -> None:
        self._log_error(
            error,
            ErrorCategory.EXPORT,
            component,
            url=self._record.url if self._record else None,
            generation=self._generation,
            export_format=fmt.value,
            pixel_density=options.pixel_density,
        )

    def _log_error(
        self, error: Exception, category: ErrorCategory, component: str, **context: Any
    ) -> None:
        if self.error_logger is not None:
            self.error_logger.log_exception(error, category, component, **context)
