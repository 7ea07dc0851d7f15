"""Favicon acquisition through an ordered list of favicon services."""

import base64
import logging
from urllib.parse import quote

import httpx

from linkcard.errors import AssetLoadError
from linkcard.models.card import ABSENT
from linkcard.pipeline.fallback import (
    Candidate,
    CandidateFailure,
    FallbackExhausted,
    first_success,
)
from linkcard.pipeline.proxy import ProxyResolver

logger = logging.getLogger(__name__)

MIN_ICON_BYTES = 100


def favicon_services(domain: str, original_url: str) -> list[tuple[str, str]]:
    """Favicon service URLs in priority order as (name, url) pairs."""
    return [
        (
            "google-t2",
            "https://t2.gstatic.com/faviconV2?client=SOCIAL&type=FAVICON"
            f"&fallback_opts=TYPE,SIZE,URL&url={quote(original_url, safe='')}&size=128",
        ),
        ("google-s2", f"https://www.google.com/s2/favicons?domain={domain}&sz=128"),
        ("duckduckgo", f"https://icons.duckduckgo.com/ip3/{domain}.ico"),
    ]


def to_data_uri(content: bytes, content_type: str) -> str:
    """Encode image bytes as a self-contained data URI."""
    media_type = content_type.split(";")[0].strip() or "image/png"
    return f"data:{media_type};base64,{base64.b64encode(content).decode('ascii')}"


def validate_image_response(response: httpx.Response, min_bytes: int) -> None:
    """Reject error pages served with a success status.

    Raises:
        httpx.HTTPStatusError: On non-2xx status
        AssetLoadError: If the body is too small or not an image
    """
    response.raise_for_status()

    content_type = response.headers.get("Content-Type", "").lower()
    if len(response.content) < min_bytes:
        raise AssetLoadError(f"Body too small to be an image ({len(response.content)} bytes)")
    if "text" in content_type or "html" in content_type:
        raise AssetLoadError(f"Got {content_type} instead of an image")
    if not content_type.startswith("image/"):
        raise AssetLoadError(f"Unexpected content type {content_type!r}")


class FaviconAcquirer:
    """Fetch the first usable favicon and embed it as a data URI."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        resolver: ProxyResolver | None = None,
        min_bytes: int = MIN_ICON_BYTES,
    ) -> None:
        self.client = client
        self.resolver = resolver or ProxyResolver()
        self.min_bytes = min_bytes

    async def acquire(self, domain: str, original_url: str) -> str:
        """Return an embedded favicon, or ``ABSENT`` if no service produced one.

        Services are tried one at a time; a later service is only contacted after
        the previous one was rejected. Never raises.
        """
        candidates = [
            Candidate(name, lambda url=service_url: self._fetch(url))
            for name, service_url in favicon_services(domain, original_url)
        ]

        try:
            return await first_success(candidates, on_failure=self._log_failure)
        except FallbackExhausted:
            logger.info(f"No favicon found for {domain}")
            return ABSENT

    async def _fetch(self, service_url: str) -> str:
        response = await self.client.get(self.resolver.resolve(service_url))
        validate_image_response(response, self.min_bytes)
        return to_data_uri(response.content, response.headers["Content-Type"])

    @staticmethod
    def _log_failure(failure: CandidateFailure) -> None:
        logger.warning(f"Favicon fetch failed for {failure.name}: {failure.error}")
