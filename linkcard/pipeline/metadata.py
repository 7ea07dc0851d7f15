"""AI-powered page metadata with a deterministic local fallback."""

import logging
from typing import Any
from urllib.parse import urlparse

import httpx
import instructor
from anthropic import AsyncAnthropic
from bs4 import BeautifulSoup

from linkcard.config import MetadataConfig
from linkcard.models.card import PageMetadata

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """
I need metadata for this website: {url}

{hints}
Return the page title (max 60 chars), a concise description (max 120 chars),
the author name or organization, the publication date (e.g. 'Oct 12, 2024')
and up to 3 relevant short tags/keywords.

Use empty strings for the author and publication date when unknown.
If the website is not accessible or unknown, infer a generic title/description
based on the domain name.
"""


def fallback_metadata(url: str) -> PageMetadata:
    """Metadata derived locally from the URL alone."""
    domain = urlparse(url).hostname
    if not domain:
        return PageMetadata(title="Website", description=url)
    return PageMetadata(title=domain, description="Link to " + url)


def extract_page_hints(html: str) -> dict[str, str]:
    """Pull the title and description tags out of a page."""
    soup = BeautifulSoup(html, "html.parser")
    hints: dict[str, str] = {}

    if soup.title and soup.title.string:
        hints["title"] = soup.title.string.strip()

    for attr, key in (
        ({"name": "description"}, "description"),
        ({"property": "og:title"}, "og:title"),
        ({"property": "og:description"}, "og:description"),
        ({"name": "author"}, "author"),
        ({"property": "article:published_time"}, "published_time"),
        ({"name": "keywords"}, "keywords"),
    ):
        tag = soup.find("meta", attrs=attr)
        if tag and tag.get("content"):
            hints[key] = str(tag["content"]).strip()

    return hints


class MetadataAcquirer:
    """Ask an LLM for a page's title, description and tags.

    ``acquire`` never raises: any failure (missing API key, network errors,
    responses that don't validate against ``PageMetadata``) yields
    ``fallback_metadata``.
    """

    def __init__(
        self,
        config: MetadataConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        client: Any | None = None,
    ) -> None:
        self.config = config or MetadataConfig()
        self.http_client = http_client

        if client is not None:
            self.client = client
        elif self.config.api_key:
            # Patch Anthropic client with instructor for structured outputs
            self.client = instructor.from_anthropic(
                client=AsyncAnthropic(api_key=self.config.api_key),
                mode=instructor.Mode.ANTHROPIC_TOOLS,
            )
        else:
            self.client = None

    async def acquire(self, url: str) -> PageMetadata:
        if self.client is None:
            logger.warning("ANTHROPIC_API_KEY not set, using fallback metadata")
            return fallback_metadata(url)

        try:
            hints = await self._page_hints(url)
            metadata = await self.client.messages.create(
                model=self.config.model,
                messages=[{"role": "user", "content": self._build_prompt(url, hints)}],
                response_model=PageMetadata,
                max_tokens=self.config.max_tokens,
            )
            if not isinstance(metadata, PageMetadata):
                raise TypeError(f"Unexpected metadata response: {type(metadata).__name__}")
            return metadata

        except Exception as e:
            logger.warning(f"Metadata generation failed for {url}: {e}")
            return fallback_metadata(url)

    async def _page_hints(self, url: str) -> dict[str, str]:
        """Fetch the page itself; hints are best effort."""
        if not self.config.page_hints or self.http_client is None:
            return {}

        try:
            response = await self.http_client.get(url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug(f"Could not fetch page hints for {url}: {e}")
            return {}

        if "html" not in response.headers.get("Content-Type", ""):
            return {}
        return extract_page_hints(response.text)

    def _build_prompt(self, url: str, hints: dict[str, str]) -> str:
        hint_text = ""
        if hints:
            lines = "\n".join(f"- {key}: {value[:300]}" for key, value in hints.items())
            hint_text = f"The page declares these tags:\n{lines}\n"
        return PROMPT_TEMPLATE.format(url=url, hints=hint_text)
