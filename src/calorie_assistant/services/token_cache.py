"""Single-flight cache for the structured provider's access token."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from calorie_assistant.domain.nutrition import ProviderToken

_logger = logging.getLogger(__name__)

TokenFetcher = Callable[[], Awaitable[ProviderToken]]


@dataclass
class TokenCache:
    """Holds one access token and refreshes it at most once at a time.

    Callers that find the token missing or about to expire all await the same
    in-flight refresh, so a failed refresh fails every waiter together.
    """

    refresh_buffer_seconds: float = 300
    clock: Callable[[], float] = time.time
    _token: ProviderToken | None = field(default=None, init=False)
    _refresh: asyncio.Future[ProviderToken] | None = field(default=None, init=False)

    async def get_token(self, fetch: TokenFetcher) -> str:
        """Return a valid token, fetching a new one only when needed."""
        cached = self._fresh_token()
        if cached is not None:
            return cached.token
        refresh = self._refresh
        if refresh is None:
            refresh = asyncio.ensure_future(self._run_refresh(fetch))
            self._refresh = refresh
        # A cancelled waiter must not cancel the refresh other callers share.
        token = await asyncio.shield(refresh)
        return token.token

    def invalidate(self) -> None:
        """Drop the cached token so the next call refreshes it."""
        self._token = None

    async def _run_refresh(self, fetch: TokenFetcher) -> ProviderToken:
        try:
            token = await fetch()
        except Exception:
            _logger.warning("Provider token refresh failed")
            raise
        finally:
            self._refresh = None
        self._store(token)
        _logger.info("Provider token refreshed")
        current = self._token
        return current if current is not None else token

    def _fresh_token(self) -> ProviderToken | None:
        token = self._token
        if token is None:
            return None
        if self.clock() + self.refresh_buffer_seconds >= token.expires_at:
            return None
        return token

    def _store(self, token: ProviderToken) -> None:
        current = self._token
        if current is not None and token.expires_at < current.expires_at:
            return
        self._token = token
