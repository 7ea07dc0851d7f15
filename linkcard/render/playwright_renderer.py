"""Headless Chromium renderer for card exports.

Requires playwright: pip install playwright && playwright install chromium
"""

import base64
import logging
import re
from typing import Any
from urllib.parse import quote, urljoin
from xml.sax.saxutils import escape, quoteattr

import httpx
from bs4 import BeautifulSoup
from playwright.async_api import Browser, Page, Playwright, async_playwright

from linkcard.errors import AssetLoadError, ExportError, FontLoadError
from linkcard.pipeline.favicon import to_data_uri
from linkcard.render.export import ExportFormat, ExportOptions
from linkcard.render.surface import RenderedNode

logger = logging.getLogger(__name__)

_CSS_URL_RE = re.compile(r"url\((['\"]?)(?!data:)([^'\")]+)\1\)")

_SERIALIZE_NODE_JS = """
(selector) => {
    const node = document.querySelector(selector);
    if (!node) return null;
    const rect = node.getBoundingClientRect();
    const styles = Array.from(document.querySelectorAll('style'))
        .map((style) => style.textContent)
        .join('\\n');
    return {
        width: Math.ceil(rect.width),
        height: Math.ceil(rect.height),
        markup: new XMLSerializer().serializeToString(node),
        styles: styles,
        rootClass: document.documentElement.className,
    };
}
"""

_BROKEN_FONTS_JS = """
async () => {
    await document.fonts.ready;
    const missingSheets = Array.from(document.querySelectorAll('link[data-webfont]'))
        .filter((link) => !link.sheet)
        .map((link) => link.href);
    const failedFaces = Array.from(document.fonts)
        .filter((face) => face.status === 'error')
        .map((face) => face.family);
    return missingSheets.concat(failedFaces);
}
"""


def strip_webfonts(html: str) -> str:
    """Remove every webfont stylesheet so the capture uses local fonts."""
    soup = BeautifulSoup(html, "html.parser")
    for link in soup.find_all("link", attrs={"data-webfont": True}):
        link.decompose()
    return str(soup)


async def inline_remote_images(html: str, client: httpx.AsyncClient) -> str:
    """Replace cross-origin <img> sources with embedded data URIs.

    Images that cannot be fetched keep their original source.
    """
    soup = BeautifulSoup(html, "html.parser")
    for img in soup.find_all("img"):
        src = img.get("src", "")
        if not src.startswith(("http://", "https://")):
            continue
        try:
            response = await client.get(src, follow_redirects=True)
            response.raise_for_status()
            content_type = response.headers.get("Content-Type", "")
            if not content_type.startswith("image/"):
                raise AssetLoadError(f"Got {content_type!r} instead of an image")
        except (httpx.HTTPError, AssetLoadError) as e:
            logger.warning(f"Could not inline image {src}: {e}")
            continue
        img["src"] = to_data_uri(response.content, content_type)
    return str(soup)


async def inline_webfonts(html: str, client: httpx.AsyncClient) -> str:
    """Turn webfont stylesheet links into <style> blocks with embedded font files.

    Raises:
        FontLoadError: If a stylesheet or font file cannot be fetched
    """
    soup = BeautifulSoup(html, "html.parser")
    for link in soup.find_all("link", attrs={"data-webfont": True}):
        href = link.get("href", "")
        try:
            response = await client.get(href, follow_redirects=True)
            response.raise_for_status()
            css = await _embed_css_urls(response.text, href, client)
        except httpx.HTTPError as e:
            raise FontLoadError(f"Failed to load webfont {href}: {e}") from e

        style = soup.new_tag("style")
        style["data-webfont"] = ""
        style.string = css
        link.replace_with(style)
    return str(soup)


async def _embed_css_urls(css: str, base_url: str, client: httpx.AsyncClient) -> str:
    embedded: dict[str, str] = {}
    for _, ref in _CSS_URL_RE.findall(css):
        if ref in embedded:
            continue
        response = await client.get(urljoin(base_url, ref), follow_redirects=True)
        response.raise_for_status()
        content_type = response.headers.get("Content-Type", "font/woff2")
        payload = base64.b64encode(response.content).decode("ascii")
        embedded[ref] = f"data:{content_type.split(';')[0]};base64,{payload}"

    return _CSS_URL_RE.sub(
        lambda m: f'url("{embedded.get(m.group(2), m.group(2))}")', css
    )


def build_svg(serialized: dict[str, Any], transparent_background: bool) -> str:
    """Wrap a serialized DOM node in an SVG foreignObject."""
    width, height = serialized["width"], serialized["height"]
    background = "" if transparent_background else (
        f'<rect width="{width}" height="{height}" fill="#ffffff"/>'
    )
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">'
        f"{background}"
        f'<foreignObject x="0" y="0" width="100%" height="100%">'
        f'<div xmlns="http://www.w3.org/1999/xhtml" class={quoteattr(serialized["rootClass"])}>'
        f"<style>{escape(serialized['styles'])}</style>"
        f"{serialized['markup']}"
        f"</div></foreignObject></svg>"
    )


class PlaywrightRenderer:
    """Render card HTML in headless Chromium.

    Use as an async context manager so the browser is started and closed once
    for any number of captures.
    """

    def __init__(self, client: httpx.AsyncClient, timeout_ms: int = 30_000) -> None:
        self.client = client
        self.timeout_ms = timeout_ms
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    async def __aenter__(self) -> "PlaywrightRenderer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def start(self) -> None:
        if self._browser is not None:
            return
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch()

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def render(self, node: RenderedNode, options: ExportOptions, fmt: ExportFormat) -> str:
        """Capture ``node`` as a PNG or SVG data URI."""
        await self.start()
        if self._browser is None:
            raise RuntimeError("Browser failed to start")

        html = node.html
        if options.skip_fonts:
            html = strip_webfonts(html)
        elif fmt is ExportFormat.SVG:
            html = await inline_webfonts(html, self.client)
        if options.inline_remote_images:
            html = await inline_remote_images(html, self.client)

        context = await self._browser.new_context(
            viewport={"width": node.width, "height": node.height},
            device_scale_factor=options.pixel_density,
        )
        try:
            page = await context.new_page()
            await page.set_content(html, wait_until="networkidle", timeout=self.timeout_ms)

            if not options.skip_fonts:
                await self._check_fonts(page)

            if fmt is ExportFormat.SVG:
                return await self._capture_svg(page, node, options)
            return await self._capture_png(page, node, options)
        finally:
            await context.close()

    async def _check_fonts(self, page: Page) -> None:
        broken = await page.evaluate(_BROKEN_FONTS_JS)
        if broken:
            raise FontLoadError(f"Webfonts failed to load: {', '.join(broken)}")

    async def _capture_png(self, page: Page, node: RenderedNode, options: ExportOptions) -> str:
        element = await page.query_selector(node.selector)
        if element is None:
            raise ExportError(f"Nothing to capture at {node.selector}")

        image = await element.screenshot(
            type="png",
            omit_background=options.transparent_background,
            timeout=self.timeout_ms,
        )
        return "data:image/png;base64," + base64.b64encode(image).decode("ascii")

    async def _capture_svg(self, page: Page, node: RenderedNode, options: ExportOptions) -> str:
        serialized = await page.evaluate(_SERIALIZE_NODE_JS, node.selector)
        if serialized is None:
            raise ExportError(f"Nothing to capture at {node.selector}")

        svg = build_svg(serialized, options.transparent_background)
        return "data:image/svg+xml;charset=utf-8," + quote(svg)
