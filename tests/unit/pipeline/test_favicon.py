"""Tests for favicon acquisition."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from conftest import PNG_BYTES, image_response

from linkcard.errors import AssetLoadError
from linkcard.models.card import ABSENT
from linkcard.pipeline.favicon import (
    FaviconAcquirer,
    favicon_services,
    to_data_uri,
    validate_image_response,
)
from linkcard.pipeline.proxy import ProxyResolver


def _service_host(request: httpx.Request) -> str:
    """Host of the service URL wrapped inside a relay request."""
    return urlparse(parse_qs(request.url.query.decode())["url"][0]).hostname or ""


def make_acquirer(handler) -> tuple[FaviconAcquirer, list[str]]:
    hosts: list[str] = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        hosts.append(_service_host(request))
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
    return FaviconAcquirer(client, resolver=ProxyResolver()), hosts


def describe_favicon_services():
    """Tests for the service list."""

    def it_lists_services_in_priority_order():
        services = favicon_services("example.com", "https://www.example.com/page")

        assert [name for name, _ in services] == ["google-t2", "google-s2", "duckduckgo"]
        assert "url=https%3A%2F%2Fwww.example.com%2Fpage" in services[0][1]
        assert services[1][1] == "https://www.google.com/s2/favicons?domain=example.com&sz=128"
        assert services[2][1] == "https://icons.duckduckgo.com/ip3/example.com.ico"


def describe_validate_image_response():
    """Tests for response validation."""

    def it_accepts_image_bodies():
        validate_image_response(image_response(b"x" * 200), min_bytes=100)

    def it_rejects_small_bodies():
        with pytest.raises(AssetLoadError):
            validate_image_response(image_response(b"x" * 99), min_bytes=100)

    def it_rejects_html_error_pages():
        response = image_response(b"<html>" + b"x" * 500, content_type="text/html; charset=utf-8")
        with pytest.raises(AssetLoadError):
            validate_image_response(response, min_bytes=100)

    def it_rejects_non_image_types():
        response = image_response(content_type="application/octet-stream")
        with pytest.raises(AssetLoadError):
            validate_image_response(response, min_bytes=100)

    def it_raises_on_error_status():
        response = httpx.Response(404, request=httpx.Request("GET", "https://wsrv.nl/"))
        with pytest.raises(httpx.HTTPStatusError):
            validate_image_response(response, min_bytes=100)


def test_to_data_uri_drops_content_type_parameters() -> None:
    """It keeps only the media type."""
    assert to_data_uri(b"abc", "image/png; charset=binary") == "data:image/png;base64,YWJj"


class DescribeFaviconAcquirer:
    """Tests for FaviconAcquirer."""

    @pytest.mark.asyncio
    async def it_stops_after_first_usable_icon(self):
        acquirer, hosts = make_acquirer(lambda request: image_response())

        favicon = await acquirer.acquire("example.com", "https://example.com")

        assert favicon == to_data_uri(PNG_BYTES, "image/png")
        assert hosts == ["t2.gstatic.com"]

    @pytest.mark.asyncio
    async def it_falls_back_to_next_service(self):
        def handler(request):
            if _service_host(request) == "icons.duckduckgo.com":
                return image_response(content_type="image/x-icon")
            return httpx.Response(404)

        acquirer, hosts = make_acquirer(handler)

        favicon = await acquirer.acquire("example.com", "https://example.com")

        assert favicon.startswith("data:image/x-icon;base64,")
        assert hosts == ["t2.gstatic.com", "www.google.com", "icons.duckduckgo.com"]

    @pytest.mark.asyncio
    async def it_skips_tiny_and_html_responses(self):
        def handler(request):
            host = _service_host(request)
            if host == "t2.gstatic.com":
                return image_response(b"x" * 50)
            if host == "www.google.com":
                return image_response(b"<html>" + b"x" * 500, content_type="text/html")
            return image_response()

        acquirer, hosts = make_acquirer(handler)

        favicon = await acquirer.acquire("example.com", "https://example.com")

        assert favicon.startswith("data:image/png;base64,")
        assert len(hosts) == 3

    @pytest.mark.asyncio
    async def it_skips_transport_errors(self):
        def handler(request):
            if _service_host(request) == "t2.gstatic.com":
                raise httpx.ConnectError("connection refused", request=request)
            return image_response()

        acquirer, hosts = make_acquirer(handler)

        favicon = await acquirer.acquire("example.com", "https://example.com")

        assert favicon.startswith("data:image/png;base64,")
        assert hosts == ["t2.gstatic.com", "www.google.com"]

    @pytest.mark.asyncio
    async def it_returns_absent_when_every_service_fails(self):
        acquirer, hosts = make_acquirer(lambda request: httpx.Response(404))

        favicon = await acquirer.acquire("example.com", "https://example.com")

        assert favicon == ABSENT
        assert len(hosts) == 3

    @pytest.mark.asyncio
    async def it_requests_through_the_relay(self):
        urls: list[str] = []

        def handler(request):
            urls.append(str(request.url))
            return image_response()

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        await FaviconAcquirer(client).acquire("example.com", "https://example.com")

        assert urls[0].startswith("https://wsrv.nl/?url=")
        assert "&output=png&n=" in urls[0]
