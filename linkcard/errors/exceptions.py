"""Exception hierarchy for card generation and export."""


class CardError(Exception):
    """Base exception for card errors."""
    pass


class InvalidURLError(CardError):
    """Raised when user input cannot be turned into an absolute URL."""

    def __init__(self, raw: str) -> None:
        super().__init__(f"Not a valid URL: {raw!r}")
        self.raw = raw


class AssetLoadError(CardError):
    """Raised when a remote asset responds with something that is not an image."""
    pass


class FontLoadError(CardError):
    """Raised when webfonts fail to load during a capture."""
    pass


class ExportError(CardError):
    """Raised when every capture attempt of the export pipeline failed."""
    pass
