"""DuckDuckGo Instant Answer API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from calorie_assistant.errors import ExternalServiceError

_SERVICE = "duckduckgo"


class WebSearchClient(Protocol):
    """Interface for keyless web search."""

    async def search(self, query: str) -> dict[str, object]:
        """Run a search and return the raw JSON payload."""


@dataclass
class HttpxDuckDuckGoClient(WebSearchClient):
    """HTTPX-backed DuckDuckGo client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 10.0

    @classmethod
    def create(cls, base_url: str, timeout: float = 10.0) -> "HttpxDuckDuckGoClient":
        """Create a DuckDuckGo client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient(), timeout=timeout)

    async def search(self, query: str) -> dict[str, object]:
        """Query the instant answer endpoint."""
        try:
            response = await self.http_client.get(
                self.base_url,
                params={
                    "q": query,
                    "format": "json",
                    "no_html": "1",
                    "skip_disambig": "1",
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError(
                _SERVICE, "search request rejected", exc.response.status_code
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ExternalServiceError(_SERVICE, "search request failed") from exc

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
