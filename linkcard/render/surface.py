"""Render surface: card HTML composition and runtime screenshot loading."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape

from linkcard.models.card import CardRecord, CardTheme
from linkcard.pipeline.favicon import to_data_uri, validate_image_response
from linkcard.pipeline.fallback import (
    Candidate,
    CandidateFailure,
    FallbackExhausted,
    first_success,
)

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
CARD_SELECTOR = "#card"

# Anything below this is an error placeholder rather than a screenshot
MIN_SCREENSHOT_BYTES = 1024


class ScreenshotState(Enum):
    """Loading state of the screenshot shown on a card."""

    PENDING_PRIMARY = "pending_primary"
    PENDING_BACKUP = "pending_backup"
    LOADED = "loaded"
    UNAVAILABLE = "unavailable"


class ScreenshotFallback:
    """Swap from the primary to the backup screenshot on load failure.

    Independent of how load/error events are observed: callers report them via
    ``mark_loaded`` and ``mark_failed``. Events arriving after a terminal state
    are ignored.
    """

    def __init__(self, primary: str, backup: str | None = None) -> None:
        self.primary = primary
        self.backup = backup
        self.state = ScreenshotState.PENDING_PRIMARY
        self.active_source = primary

    @classmethod
    def for_record(cls, record: CardRecord) -> "ScreenshotFallback":
        return cls(record.screenshot_url, record.backup_screenshot_url)

    @property
    def is_loading(self) -> bool:
        return self.state in (ScreenshotState.PENDING_PRIMARY, ScreenshotState.PENDING_BACKUP)

    @property
    def has_failed(self) -> bool:
        return self.state is ScreenshotState.UNAVAILABLE

    @property
    def is_terminal(self) -> bool:
        return not self.is_loading

    def mark_loaded(self) -> None:
        if self.is_terminal:
            return
        self.state = ScreenshotState.LOADED

    def mark_failed(self) -> None:
        if self.is_terminal:
            return

        if self.state is ScreenshotState.PENDING_PRIMARY and self.backup:
            logger.info("Primary screenshot failed, attempting fallback...")
            self.active_source = self.backup
            self.state = ScreenshotState.PENDING_BACKUP
        else:
            logger.warning("All screenshot sources failed")
            self.state = ScreenshotState.UNAVAILABLE


@dataclass(frozen=True)
class RenderedNode:
    """A self-contained HTML document and the element to capture from it."""

    html: str
    selector: str = CARD_SELECTOR
    width: int = 560
    height: int = 720


class CardSurface:
    """Display a ``CardRecord`` and own its runtime-only image state."""

    def __init__(
        self, client: httpx.AsyncClient, min_screenshot_bytes: int = MIN_SCREENSHOT_BYTES
    ) -> None:
        self.client = client
        self.min_screenshot_bytes = min_screenshot_bytes
        self.record: CardRecord | None = None
        self.screenshot: ScreenshotFallback | None = None
        self.screenshot_data: str | None = None
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape(["html", "xml"])
        )

    def present(self, record: CardRecord) -> None:
        """Show ``record``, resetting screenshot state when the record changed."""
        if self.record is not None and self.record.card_id == record.card_id:
            return
        self.record = record
        self.screenshot = ScreenshotFallback.for_record(record)
        self.screenshot_data = None

    async def load_screenshot(self) -> str | None:
        """Fetch the active screenshot source, falling back to the backup.

        Returns:
            The screenshot as a data URI, or None when it is unavailable
        """
        machine = self._require_screenshot()
        if machine.state is ScreenshotState.LOADED:
            return self.screenshot_data
        if machine.has_failed:
            return None

        if machine.state is ScreenshotState.PENDING_PRIMARY:
            sources = [("primary", machine.primary)]
            if machine.backup:
                sources.append(("backup", machine.backup))
        else:
            sources = [("backup", machine.active_source)]

        candidates = [
            Candidate(name, lambda url=url: self._fetch_screenshot(url)) for name, url in sources
        ]

        def on_failure(failure: CandidateFailure) -> None:
            logger.warning(f"Screenshot {failure.name} failed to load: {failure.error}")
            machine.mark_failed()

        try:
            self.screenshot_data = await first_success(candidates, on_failure=on_failure)
        except FallbackExhausted:
            return None

        machine.mark_loaded()
        return self.screenshot_data

    async def _fetch_screenshot(self, url: str) -> str:
        response = await self.client.get(url, follow_redirects=True)
        validate_image_response(response, self.min_screenshot_bytes)
        return to_data_uri(response.content, response.headers["Content-Type"])

    def render(self, theme: CardTheme = CardTheme.LIGHT) -> RenderedNode:
        """Compose the card HTML for the current record and screenshot state."""
        if self.record is None:
            raise RuntimeError("No card has been presented")
        machine = self._require_screenshot()

        template = self.env.get_template("card.html")
        html = template.render(
            card=self.record,
            theme=theme.value,
            screenshot_src=self.screenshot_data,
            screenshot_loading=machine.is_loading,
            screenshot_failed=machine.has_failed,
        )
        return RenderedNode(html=html)

    def _require_screenshot(self) -> ScreenshotFallback:
        if self.screenshot is None:
            raise RuntimeError("No card has been presented")
        return self.screenshot
