"""Shared fixtures for card tests."""

import httpx
import pytest

from linkcard.models.card import CardRecord

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 2048
QR_DATA_URI = "data:image/png;base64,iVBORw0KGgo="


def image_response(
    content: bytes = PNG_BYTES,
    content_type: str = "image/png",
    url: str = "https://wsrv.nl/",
) -> httpx.Response:
    return httpx.Response(
        200,
        content=content,
        headers={"Content-Type": content_type},
        request=httpx.Request("GET", url),
    )


@pytest.fixture
def make_record():
    """Factory for card records with sensible defaults."""

    def _make(**overrides) -> CardRecord:
        data = {
            "url": "https://example.com",
            "domain": "example.com",
            "title": "Example Domain",
            "description": "An example page",
            "screenshot_url": "https://wsrv.nl/?url=primary&output=png&n=1",
            "backup_screenshot_url": "https://wsrv.nl/?url=backup&output=png&n=2",
            "favicon": "",
            "qr_code": QR_DATA_URI,
            "timestamp": "Oct 18, 2026",
        }
        data.update(overrides)
        return CardRecord(**data)

    return _make
