"""Data models for cards, viewports and generation status."""

from linkcard.models.card import (
    ABSENT,
    VIEWPORTS,
    CardRecord,
    CardTheme,
    ColorScheme,
    GenerationStatus,
    GenerationStep,
    PageMetadata,
    ViewportProfile,
    get_viewport,
)

__all__ = [
    "ABSENT",
    "VIEWPORTS",
    "CardRecord",
    "CardTheme",
    "ColorScheme",
    "GenerationStatus",
    "GenerationStep",
    "PageMetadata",
    "ViewportProfile",
    "get_viewport",
]
