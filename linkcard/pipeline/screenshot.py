"""Screenshot source URLs for the primary and backup capture services."""

from dataclasses import dataclass
from urllib.parse import quote, urlencode

from linkcard.models.card import ColorScheme, ViewportProfile
from linkcard.pipeline.proxy import ProxyResolver

MICROLINK_API_URL = "https://api.microlink.io/"
MSHOTS_URL = "https://s0.wp.com/mshots/v1/"

DEVICE_SCALE_FACTOR = 2
SETTLE_DELAY = "2s"


@dataclass(frozen=True)
class ScreenshotSources:
    """Candidate screenshot URLs, in the order the render surface tries them."""

    primary: str
    backup: str | None = None


def microlink_url(url: str, viewport: ViewportProfile, color_scheme: ColorScheme) -> str:
    """Full-fidelity capture: crisp PNG at 2x, waiting for client-side rendering."""
    params = {
        "url": url,
        "screenshot": "true",
        "meta": "false",
        "embed": "screenshot.url",
        "screenshot.type": "png",
        "screenshot.deviceScaleFactor": DEVICE_SCALE_FACTOR,
        "waitFor": SETTLE_DELAY,
        "screenshot.fullPage": "false",
        "screenshot.bg": "true",
        "viewport.width": viewport.width,
        "viewport.height": viewport.height,
        "colorScheme": color_scheme.value,
    }
    return f"{MICROLINK_API_URL}?{urlencode(params)}"


def mshots_url(url: str, viewport: ViewportProfile) -> str:
    """Lower-fidelity but highly available capture."""
    return f"{MSHOTS_URL}{quote(url, safe='')}?w={viewport.width}&h={viewport.height}"


class ScreenshotUrlBuilder:
    """Compute proxied screenshot URLs without fetching them."""

    def __init__(self, resolver: ProxyResolver | None = None) -> None:
        self.resolver = resolver or ProxyResolver()

    def build(
        self, url: str, viewport: ViewportProfile, color_scheme: ColorScheme
    ) -> ScreenshotSources:
        return ScreenshotSources(
            primary=self.resolver.resolve(microlink_url(url, viewport, color_scheme)),
            backup=self.resolver.resolve(mshots_url(url, viewport)),
        )
