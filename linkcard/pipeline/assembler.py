"""Card assembly: concurrent asset acquisition merged into one record."""

import asyncio
import logging
import re
from urllib.parse import urlparse

from linkcard.errors import InvalidURLError
from linkcard.models.card import (
    CardRecord,
    ColorScheme,
    PageMetadata,
    ViewportProfile,
    format_timestamp,
)
from linkcard.pipeline import qr
from linkcard.pipeline.favicon import FaviconAcquirer
from linkcard.pipeline.metadata import MetadataAcquirer
from linkcard.pipeline.screenshot import ScreenshotSources, ScreenshotUrlBuilder

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def normalize_url(raw: str) -> str:
    """Trim input and default to https when no http(s) scheme is given.

    Raises:
        InvalidURLError: If the result is not an absolute URL with a host
    """
    url = raw.strip()
    if not _SCHEME_RE.match(url):
        url = "https://" + url

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
        parsed.port  # raises ValueError on a malformed port
    except ValueError as e:
        raise InvalidURLError(raw) from e

    if not hostname or any(c.isspace() for c in url):
        raise InvalidURLError(raw)
    return url


def derive_domain(url: str) -> str:
    """Hostname with a leading 'www.' removed."""
    hostname = urlparse(url).hostname or ""
    return hostname.removeprefix("www.")


class CardAssembler:
    """Build a ``CardRecord`` from raw user input."""

    def __init__(
        self,
        metadata: MetadataAcquirer,
        favicon: FaviconAcquirer,
        screenshots: ScreenshotUrlBuilder | None = None,
        qr_options: qr.QROptions | None = None,
    ) -> None:
        self.metadata = metadata
        self.favicon = favicon
        self.screenshots = screenshots or ScreenshotUrlBuilder()
        self.qr_options = qr_options or qr.QROptions()

    async def assemble(
        self, raw: str, viewport: ViewportProfile, color_scheme: ColorScheme
    ) -> CardRecord:
        """Run the acquisitions concurrently and construct the record.

        Metadata, QR and favicon acquisition each absorb their own failures, so
        one slow or failing source never blocks or cancels the others.

        Raises:
            InvalidURLError: If ``raw`` is not a usable URL
        """
        url = normalize_url(raw)
        domain = derive_domain(url)
        logger.info(f"Assembling card for {url}")

        metadata, qr_code, favicon = await asyncio.gather(
            self.metadata.acquire(url),
            self._encode_qr(url),
            self.favicon.acquire(domain, url),
        )

        sources = self.screenshots.build(url, viewport, color_scheme)
        return self._build_record(url, domain, metadata, qr_code, favicon, sources)

    async def _encode_qr(self, url: str) -> str:
        return qr.encode(url, self.qr_options)

    @staticmethod
    def _build_record(
        url: str,
        domain: str,
        metadata: PageMetadata,
        qr_code: str,
        favicon: str,
        sources: ScreenshotSources,
    ) -> CardRecord:
        return CardRecord(
            url=url,
            domain=domain,
            title=metadata.title,
            description=metadata.description,
            screenshot_url=sources.primary,
            backup_screenshot_url=sources.backup,
            favicon=favicon,
            qr_code=qr_code,
            timestamp=format_timestamp(),
            author=metadata.author,
            published_time=metadata.published_time,
            keywords=tuple(metadata.keywords),
        )
