"""Nutrition domain models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NutritionRecord:
    """Nutrition facts for one food match, scoped to its serving."""

    name: str
    serving_description: str
    brand: str | None = None
    calories: float | None = None
    fat_g: float | None = None
    carbs_g: float | None = None
    protein_g: float | None = None


@dataclass(frozen=True)
class ProviderToken:
    """OAuth access token held by the structured provider."""

    token: str
    expires_at: float
