"""Data models for generated cards and generation state."""

import re
import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Favicon reference used when no favicon service produced an image
ABSENT = ""

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


class GenerationStep(str, Enum):
    """Process state of one generation attempt."""

    IDLE = "idle"
    FETCHING_METADATA = "fetching_metadata"
    GENERATING_QR = "generating_qr"
    COMPLETED = "completed"
    ERROR = "error"


class GenerationStatus(BaseModel):
    """Current generation step with an optional human-readable message."""

    model_config = ConfigDict(frozen=True)

    step: GenerationStep = GenerationStep.IDLE
    message: str | None = None

    @property
    def is_generating(self) -> bool:
        """Whether a generation is in flight."""
        return self.step in (GenerationStep.FETCHING_METADATA, GenerationStep.GENERATING_QR)


class ColorScheme(str, Enum):
    """Color scheme requested from the website when capturing it."""

    LIGHT = "light"
    DARK = "dark"

    def toggled(self) -> "ColorScheme":
        return ColorScheme.DARK if self is ColorScheme.LIGHT else ColorScheme.LIGHT


class CardTheme(str, Enum):
    """Styling of the card itself."""

    LIGHT = "light"
    DARK = "dark"

    def toggled(self) -> "CardTheme":
        return CardTheme.DARK if self is CardTheme.LIGHT else CardTheme.LIGHT


class ViewportProfile(BaseModel):
    """Simulated device size used for screenshots and export framing."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    width: int = Field(gt=0)
    height: int = Field(gt=0)


VIEWPORTS: tuple[ViewportProfile, ...] = (
    ViewportProfile(id="desktop", label="Desktop", width=1280, height=800),
    ViewportProfile(id="mobile", label="Mobile", width=375, height=812),
    ViewportProfile(id="tablet", label="Tablet", width=768, height=1024),
)


def get_viewport(viewport_id: str) -> ViewportProfile:
    """Look up a built-in viewport profile by id."""
    for viewport in VIEWPORTS:
        if viewport.id == viewport_id:
            return viewport
    raise KeyError(f"Unknown viewport: {viewport_id}")


class PageMetadata(BaseModel):
    """Title, description and tags describing a web page."""

    title: str = Field(description="The page title (max 60 chars)")
    description: str = Field(description="A concise description (max 120 chars)")
    author: str = Field(
        default="", description="Author name or organization, empty string if unknown"
    )
    published_time: str = Field(
        default="", description="Publication date e.g. 'Oct 12, 2024', empty string if unknown"
    )
    keywords: list[str] = Field(
        default_factory=list, description="Up to 3 relevant short tags"
    )

    @field_validator("keywords")
    @classmethod
    def limit_keywords(cls, v: list[str]) -> list[str]:
        """Keep at most three non-empty keywords."""
        return [k.strip() for k in v if k and k.strip()][:3]


class CardRecord(BaseModel):
    """The assembled, immutable result of one generation cycle."""

    model_config = ConfigDict(frozen=True)

    card_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    url: str = Field(description="Absolute, scheme-prefixed source URL")
    domain: str = Field(description="Hostname with any leading 'www.' removed")
    title: str
    description: str
    screenshot_url: str = Field(description="Primary screenshot source")
    backup_screenshot_url: str | None = Field(default=None, description="Backup screenshot source")
    favicon: str = Field(default=ABSENT, description="Embedded favicon data URI or ABSENT")
    qr_code: str = Field(description="Embedded QR code data URI")
    timestamp: str = Field(description="Human-readable generation date")
    author: str = ""
    published_time: str = ""
    keywords: tuple[str, ...] = ()

    @model_validator(mode="after")
    def validate_references(self) -> "CardRecord":
        """Validate the URL scheme and that image references are embedded."""
        if not _SCHEME_RE.match(self.url):
            raise ValueError("url must start with http:// or https://")
        if self.favicon and not self.favicon.startswith("data:image"):
            raise ValueError("favicon must be an embedded image or ABSENT")
        if not self.qr_code.startswith("data:image"):
            raise ValueError("qr_code must be an embedded image")
        return self

    @property
    def has_favicon(self) -> bool:
        return self.favicon != ABSENT


def format_timestamp(moment: datetime | None = None) -> str:
    """Format a generation time like 'Oct 18, 2026'."""
    moment = moment or datetime.now()
    return f"{moment:%b} {moment.day}, {moment.year}"
