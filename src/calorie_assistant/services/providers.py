"""Nutrition providers backed by FatSecret and DuckDuckGo."""

import re
from dataclasses import dataclass, field

from calorie_assistant.adapters.duckduckgo_client import WebSearchClient
from calorie_assistant.adapters.fatsecret_client import FatSecretClient
from calorie_assistant.domain.nutrition import NutritionRecord
from calorie_assistant.errors import ExternalServiceError
from calorie_assistant.services.token_cache import TokenCache

_HTTP_UNAUTHORIZED = 401

_SERVING_RE = re.compile(r"^\s*Per\s+(.+?)\s+-\s+", re.IGNORECASE)
_DESCRIPTION_FIELDS = {
    "calories": re.compile(r"Calories:\s*([\d.]+)\s*kcal", re.IGNORECASE),
    "fat_g": re.compile(r"Fat:\s*([\d.]+)\s*g", re.IGNORECASE),
    "carbs_g": re.compile(r"Carbs:\s*([\d.]+)\s*g", re.IGNORECASE),
    "protein_g": re.compile(r"Protein:\s*([\d.]+)\s*g", re.IGNORECASE),
}

SERVING_REMINDER = (
    "IMPORTANT: All values above are per the listed serving size, not per the "
    "amount the user ate. Scale them to the user's actual quantity."
)

_RELATED_KEYWORDS = ("calorie", "nutrition")


@dataclass
class FatSecretProvider:
    """Structured food-database provider.

    Without a client (no credentials configured) the provider reports no
    data and never requests a token.
    """

    client: FatSecretClient | None
    token_cache: TokenCache = field(default_factory=TokenCache)
    max_results: int = 5
    name: str = "fatsecret"

    async def lookup(self, query: str) -> str | None:
        """Search FatSecret and format up to max_results matches."""
        if self.client is None:
            return None
        token = await self.token_cache.get_token(self.client.fetch_token)
        try:
            payload = await self.client.search_foods(
                token, query, max_results=self.max_results
            )
        except ExternalServiceError as exc:
            if exc.status_code == _HTTP_UNAUTHORIZED:
                self.token_cache.invalidate()
            raise
        records = parse_food_records(payload)[: self.max_results]
        if not records:
            return None
        return format_records(records)


@dataclass
class WebSearchProvider:
    """Keyless web-search provider using instant answers."""

    client: WebSearchClient
    max_related: int = 3
    name: str = "web_search"

    async def lookup(self, query: str) -> str | None:
        """Search the web for nutrition snippets about the query."""
        payload = await self.client.search(f"{query} nutrition calories")
        lines: list[str] = []
        abstract = payload.get("Abstract")
        if isinstance(abstract, str) and abstract.strip():
            lines.append(f"Summary: {abstract.strip()}")
        answer = payload.get("Answer")
        if isinstance(answer, str) and answer.strip():
            lines.append(f"Answer: {answer.strip()}")
        for text in _related_texts(payload.get("RelatedTopics"))[: self.max_related]:
            lines.append(f"Related: {text}")
        if not lines:
            return None
        return "\n".join(lines)


def parse_food_records(payload: dict[str, object]) -> list[NutritionRecord]:
    """Parse a foods.search payload into serving-scoped records."""
    error = payload.get("error")
    if isinstance(error, dict):
        raise ExternalServiceError("fatsecret", str(error.get("message", "error")))
    foods = payload.get("foods")
    if not isinstance(foods, dict):
        return []
    records: list[NutritionRecord] = []
    for food in _as_list(foods.get("food")):
        record = _record_from_food(food)
        if record is not None:
            records.append(record)
    return records


def format_records(records: list[NutritionRecord]) -> str:
    """Render records as text, repeating the serving next to every value."""
    blocks = [_format_record(record) for record in records]
    blocks.append(SERVING_REMINDER)
    return "\n\n".join(blocks)


def _record_from_food(food: dict[str, object]) -> NutritionRecord | None:
    name = str(food.get("food_name") or "").strip()
    if not name:
        return None
    brand = food.get("brand_name")
    brand = str(brand).strip() if brand else None

    serving = _default_serving(food)
    if serving is not None:
        values = {
            "calories": _to_float(serving.get("calories")),
            "fat_g": _to_float(serving.get("fat")),
            "carbs_g": _to_float(serving.get("carbohydrate")),
            "protein_g": _to_float(serving.get("protein")),
        }
        if any(value is not None for value in values.values()):
            description = str(serving.get("serving_description") or "1 serving")
            return NutritionRecord(
                name=name, brand=brand, serving_description=description, **values
            )

    description = str(food.get("food_description") or "")
    values = {}
    for key, pattern in _DESCRIPTION_FIELDS.items():
        match = pattern.search(description)
        values[key] = _to_float(match.group(1)) if match else None
    if all(value is None for value in values.values()):
        return None
    serving_match = _SERVING_RE.search(description)
    serving_description = serving_match.group(1) if serving_match else "1 serving"
    return NutritionRecord(
        name=name, brand=brand, serving_description=serving_description, **values
    )


def _default_serving(food: dict[str, object]) -> dict[str, object] | None:
    servings = food.get("servings")
    if not isinstance(servings, dict):
        return None
    options = _as_list(servings.get("serving"))
    if not options:
        return None
    for option in options:
        if str(option.get("is_default", "")) == "1":
            return option
    return options[0]


def _format_record(record: NutritionRecord) -> str:
    title = record.name if not record.brand else f"{record.name} ({record.brand})"
    serving = record.serving_description
    lines = [title, f"Serving size: {serving}"]
    for label, value, unit in (
        ("Calories", record.calories, "kcal"),
        ("Fat", record.fat_g, "g"),
        ("Carbs", record.carbs_g, "g"),
        ("Protein", record.protein_g, "g"),
    ):
        if value is not None:
            lines.append(f"- {label}: {value:g}{unit} per {serving}")
    return "\n".join(lines)


def _related_texts(topics: object) -> list[str]:
    texts: list[str] = []
    for topic in topics if isinstance(topics, list) else []:
        if not isinstance(topic, dict):
            continue
        text = topic.get("Text")
        if not isinstance(text, str):
            continue
        lowered = text.lower()
        if any(keyword in lowered for keyword in _RELATED_KEYWORDS):
            texts.append(text.strip())
    return texts


def _as_list(value: object) -> list[dict[str, object]]:
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict)]
    return []


def _to_float(value: object) -> float | None:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number >= 0 else None
