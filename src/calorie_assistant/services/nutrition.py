"""Nutrition lookup with ordered provider fallback."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

_logger = logging.getLogger(__name__)

FALLBACK_GUIDANCE = (
    "No nutrition data was found for this food in the available sources. "
    "Estimate the calories, carbs, fat, and protein yourself using typical "
    "nutrition values for this food and the quantity the user described, "
    "and make clear to the user that the numbers are an estimate."
)


class NutritionProvider(Protocol):
    """A single nutrition data source."""

    name: str

    async def lookup(self, query: str) -> str | None:
        """Return a formatted nutrition summary, or None when no data."""


@dataclass
class NutritionLookupResolver:
    """Tries providers in order and returns the first usable result.

    Provider failures are logged and treated as "no data"; when every
    provider comes up empty the caller gets FALLBACK_GUIDANCE instead.
    """

    providers: Sequence[NutritionProvider]
    fallback: str = FALLBACK_GUIDANCE

    async def resolve(self, query: str) -> str:
        """Return nutrition text for a query; never empty, never raises."""
        for provider in self.providers:
            try:
                result = await provider.lookup(query)
            except Exception as exc:
                _logger.warning(
                    "Nutrition provider %s failed (status=%s): %s",
                    provider.name,
                    _status_code_from_exception(exc),
                    type(exc).__name__,
                )
                continue
            if result and result.strip():
                _logger.info("Nutrition provider %s returned data", provider.name)
                return result
            _logger.info("Nutrition provider %s returned no data", provider.name)
        _logger.info("No nutrition provider returned data; using fallback guidance")
        return self.fallback


def _status_code_from_exception(exc: Exception) -> str:
    """Extract an HTTP status code from an exception, if available."""
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
