"""Error types and structured error logging."""

from linkcard.errors.exceptions import (
    AssetLoadError,
    CardError,
    ExportError,
    FontLoadError,
    InvalidURLError,
)

__all__ = [
    "AssetLoadError",
    "CardError",
    "ExportError",
    "FontLoadError",
    "InvalidURLError",
]
