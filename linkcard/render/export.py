"""Image export: pre-warm, full-fidelity capture, then one retry without fonts."""

import base64
import logging
from enum import Enum
from typing import Protocol
from urllib.parse import unquote_to_bytes

from pydantic import BaseModel, ConfigDict, Field

from linkcard.errors import ExportError
from linkcard.pipeline.fallback import (
    Candidate,
    CandidateFailure,
    FallbackExhausted,
    first_success,
)
from linkcard.render.surface import RenderedNode

logger = logging.getLogger(__name__)


class ExportFormat(str, Enum):
    """Output formats; the value doubles as the file extension."""

    PNG = "png"
    SVG = "svg"


class ExportOptions(BaseModel):
    """Capture options passed to the renderer."""

    model_config = ConfigDict(frozen=True)

    pixel_density: float = Field(default=1.0, gt=0, description="Device pixel ratio")
    transparent_background: bool = Field(
        default=True, description="Leave the area outside rounded corners transparent"
    )
    inline_remote_images: bool = Field(
        default=True, description="Fetch cross-origin images and embed them before capture"
    )
    skip_fonts: bool = Field(default=False, description="Drop webfonts from the capture")


DOWNLOAD_OPTIONS = ExportOptions(pixel_density=3.0)
PREVIEW_OPTIONS = ExportOptions(pixel_density=1.5)
PREWARM_OPTIONS = ExportOptions(pixel_density=1.0, skip_fonts=True)


class Renderer(Protocol):
    """Rasterizes or vectorizes a rendered node into a data URI."""

    async def render(
        self, node: RenderedNode, options: ExportOptions, fmt: ExportFormat
    ) -> str: ...


class ImageExporter:
    """Capture a rendered card with a single degraded retry."""

    def __init__(self, renderer: Renderer) -> None:
        self.renderer = renderer

    async def capture(
        self,
        node: RenderedNode,
        options: ExportOptions = DOWNLOAD_OPTIONS,
        fmt: ExportFormat = ExportFormat.PNG,
    ) -> str:
        """Capture ``node`` as a data URI.

        A throwaway render runs first so assets and layout settle. The real
        capture is retried exactly once with fonts skipped.

        Raises:
            ExportError: If both the full and the no-fonts capture failed
        """
        await self._prewarm(node, fmt)

        full = options.model_copy(update={"skip_fonts": False})
        no_fonts = options.model_copy(update={"skip_fonts": True})
        attempts = [
            Candidate("full", lambda: self.renderer.render(node, full, fmt)),
            Candidate("no-fonts", lambda: self.renderer.render(node, no_fonts, fmt)),
        ]

        def on_failure(failure: CandidateFailure) -> None:
            if failure.name == "full":
                logger.warning(
                    f"Initial {fmt.value} generation failed (likely CORS/font issue), "
                    f"retrying without fonts: {failure.error}"
                )

        try:
            return await first_success(attempts, on_failure=on_failure)
        except FallbackExhausted as e:
            logger.error(f"Final {fmt.value} generation attempt failed: {e.last_error}")
            raise ExportError(f"Could not generate image: {e.last_error}") from e.last_error

    async def _prewarm(self, node: RenderedNode, fmt: ExportFormat) -> None:
        try:
            await self.renderer.render(node, PREWARM_OPTIONS, fmt)
        except Exception as e:
            logger.debug(f"Ignoring pre-warm failure: {e}")


def decode_data_uri(data_uri: str) -> bytes:
    """Bytes of a base64 or utf-8 data URI."""
    header, _, payload = data_uri.partition(",")
    if not header.startswith("data:"):
        raise ValueError("Not a data URI")
    if header.endswith(";base64"):
        return base64.b64decode(payload)
    return unquote_to_bytes(payload)
