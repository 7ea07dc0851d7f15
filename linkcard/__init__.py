"""Turn any URL into a shareable preview card."""

__version__ = "0.1.0"
