"""Card rendering, screenshot loading and image export."""
