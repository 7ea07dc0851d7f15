"""Tests for card data models."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from linkcard.models.card import (
    ABSENT,
    VIEWPORTS,
    CardTheme,
    ColorScheme,
    GenerationStatus,
    GenerationStep,
    PageMetadata,
    format_timestamp,
    get_viewport,
)


class TestCardRecord:
    """Tests for CardRecord."""

    def test_creates_record_with_unique_id(self, make_record) -> None:
        """It assigns every record its own identity."""
        first = make_record()
        second = make_record()

        assert first.card_id != second.card_id
        assert first.favicon == ABSENT
        assert first.has_favicon is False

    def test_is_immutable(self, make_record) -> None:
        """It rejects field mutation after construction."""
        record = make_record()

        with pytest.raises(ValidationError):
            record.title = "Changed"  # type: ignore[misc]

    def test_requires_scheme_prefixed_url(self, make_record) -> None:
        """It rejects URLs without http(s) scheme."""
        with pytest.raises(ValidationError):
            make_record(url="example.com")

    def test_rejects_remote_favicon(self, make_record) -> None:
        """It only accepts embedded favicons or the absent sentinel."""
        with pytest.raises(ValidationError):
            make_record(favicon="https://example.com/favicon.ico")

        record = make_record(favicon="data:image/png;base64,AAAA")
        assert record.has_favicon is True

    def test_rejects_remote_qr_code(self, make_record) -> None:
        """It requires an embedded QR code."""
        with pytest.raises(ValidationError):
            make_record(qr_code="https://example.com/qr.png")

    def test_backup_screenshot_is_optional(self, make_record) -> None:
        """It allows records without a backup screenshot."""
        record = make_record(backup_screenshot_url=None)
        assert record.backup_screenshot_url is None


def describe_generation_status():
    """Tests for GenerationStatus."""

    def it_starts_idle():
        status = GenerationStatus()
        assert status.step == GenerationStep.IDLE
        assert status.message is None
        assert status.is_generating is False

    def it_reports_in_flight_steps():
        assert GenerationStatus(step=GenerationStep.FETCHING_METADATA).is_generating
        assert GenerationStatus(step=GenerationStep.GENERATING_QR).is_generating
        assert not GenerationStatus(step=GenerationStep.COMPLETED).is_generating
        assert not GenerationStatus(step=GenerationStep.ERROR, message="x").is_generating


def describe_viewports():
    """Tests for viewport profiles."""

    def it_provides_three_profiles():
        assert [v.id for v in VIEWPORTS] == ["desktop", "mobile", "tablet"]
        assert (VIEWPORTS[0].width, VIEWPORTS[0].height) == (1280, 800)

    def it_looks_up_by_id():
        tablet = get_viewport("tablet")
        assert (tablet.width, tablet.height) == (768, 1024)

    def it_rejects_unknown_ids():
        with pytest.raises(KeyError):
            get_viewport("watch")


def describe_page_metadata():
    """Tests for PageMetadata."""

    def it_defaults_optional_fields():
        metadata = PageMetadata(title="Title", description="Description")
        assert metadata.author == ""
        assert metadata.published_time == ""
        assert metadata.keywords == []

    def it_keeps_at_most_three_keywords():
        metadata = PageMetadata(
            title="Title", description="Description", keywords=["a", " ", "b", "c", "d"]
        )
        assert metadata.keywords == ["a", "b", "c"]


def describe_toggles():
    """Tests for theme toggles."""

    def it_toggles_color_scheme():
        assert ColorScheme.LIGHT.toggled() is ColorScheme.DARK
        assert ColorScheme.DARK.toggled() is ColorScheme.LIGHT

    def it_toggles_card_theme():
        assert CardTheme.LIGHT.toggled() is CardTheme.DARK


def test_format_timestamp() -> None:
    """It formats dates like 'Oct 8, 2026'."""
    assert format_timestamp(datetime(2026, 10, 8)) == "Oct 8, 2026"
