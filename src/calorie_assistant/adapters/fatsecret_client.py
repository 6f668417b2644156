"""FatSecret Platform API client."""

import time
from dataclasses import dataclass
from typing import Protocol

import httpx

from calorie_assistant.domain.nutrition import ProviderToken
from calorie_assistant.errors import ExternalServiceError

_SERVICE = "fatsecret"


class FatSecretClient(Protocol):
    """Interface for FatSecret token and search calls."""

    async def fetch_token(self) -> ProviderToken:
        """Request a new client-credentials access token."""

    async def search_foods(
        self, token: str, query: str, max_results: int = 5
    ) -> dict[str, object]:
        """Search foods and return the raw API payload."""


@dataclass
class HttpxFatSecretClient(FatSecretClient):
    """HTTPX-backed FatSecret client."""

    client_id: str
    client_secret: str
    token_url: str
    api_url: str
    http_client: httpx.AsyncClient
    timeout: float = 10.0

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        client_id: str,
        client_secret: str,
        token_url: str,
        api_url: str,
        timeout: float = 10.0,
    ) -> "HttpxFatSecretClient":
        """Create a FatSecret client with a managed httpx session."""
        return cls(
            client_id=client_id,
            client_secret=client_secret,
            token_url=token_url,
            api_url=api_url,
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def fetch_token(self) -> ProviderToken:
        """Request an OAuth2 token with the client-credentials grant."""
        try:
            response = await self.http_client.post(
                self.token_url,
                data={"grant_type": "client_credentials", "scope": "basic"},
                auth=(self.client_id, self.client_secret),
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError(
                _SERVICE, "token request rejected", exc.response.status_code
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ExternalServiceError(_SERVICE, "token request failed") from exc

        access_token = payload.get("access_token")
        if not access_token:
            raise ExternalServiceError(_SERVICE, "token response missing access_token")
        expires_in = float(payload.get("expires_in") or 0)
        return ProviderToken(
            token=access_token,
            expires_at=time.time() + expires_in,
        )

    async def search_foods(
        self, token: str, query: str, max_results: int = 5
    ) -> dict[str, object]:
        """Search foods by free-text expression."""
        try:
            response = await self.http_client.post(
                self.api_url,
                data={
                    "method": "foods.search",
                    "search_expression": query,
                    "format": "json",
                    "max_results": str(max_results),
                },
                headers={"Authorization": f"Bearer {token}"},
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
