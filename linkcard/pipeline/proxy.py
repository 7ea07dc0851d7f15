"""Route asset URLs through a CORS-header-injecting image relay."""

import time
from urllib.parse import quote

WSRV_BASE_URL = "https://wsrv.nl/"


class ProxyResolver:
    """Wrap target URLs in the relay with a cache-defeat token.

    Tokens are wall-clock milliseconds, bumped by one whenever two calls land in
    the same millisecond, so every proxied URL is unique.
    """

    def __init__(self, base_url: str = WSRV_BASE_URL) -> None:
        self.base_url = base_url
        self._last_token = 0

    def next_token(self) -> int:
        token = max(int(time.time() * 1000), self._last_token + 1)
        self._last_token = token
        return token

    def resolve(self, target_url: str) -> str:
        """Return the proxied, cache-busted form of ``target_url``."""
        encoded = quote(target_url, safe="")
        return f"{self.base_url}?url={encoded}&output=png&n={self.next_token()}"

