"""Recovers calorie and macro numbers from the assistant's reply."""

import re

from calorie_assistant.domain.estimation import EstimationResult

_NUMBER = r"(\d{1,3}(?:,\d{3})+|\d+)"

_PRIMARY_CALORIES = re.compile(rf"\*\*\s*Calories:\s*{_NUMBER}\s*\*\*", re.IGNORECASE)
_PRIMARY_MACROS = {
    "carbs": re.compile(rf"\*\*\s*Carbs:\s*{_NUMBER}\s*g?\s*\*\*", re.IGNORECASE),
    "fat": re.compile(rf"\*\*\s*Fat:\s*{_NUMBER}\s*g?\s*\*\*", re.IGNORECASE),
    "protein": re.compile(rf"\*\*\s*Protein:\s*{_NUMBER}\s*g?\s*\*\*", re.IGNORECASE),
}
_BOLD_CALORIES = re.compile(rf"\*\*\s*{_NUMBER}\s*(?:calories|calorie|cal)\s*\*\*", re.IGNORECASE)
_STANDALONE_CALORIES = re.compile(
    rf"(?:approximately|about|around|roughly|~)?\s*{_NUMBER}\s*(?:calories|calorie|cal)\b",
    re.IGNORECASE,
)

# Bounds worst-case regex work on adversarial input.
_MAX_TEXT_LENGTH = 20_000


def extract(text: str) -> EstimationResult:
    """Parse calories and macros out of free-form assistant text.

    The ``**Calories: N**`` summary line wins when present. Otherwise bold
    ``**N calories**`` mentions are collected, then plain mentions such as
    ``approximately 450 calories``. Macros come only from the summary line.
    """
    scanned = text[:_MAX_TEXT_LENGTH] if isinstance(text, str) else ""

    primary = _PRIMARY_CALORIES.search(scanned)
    if primary:
        calories = [_to_int(primary.group(1))]
    else:
        calories = _collect(_BOLD_CALORIES, scanned)
        for value in _collect(_STANDALONE_CALORIES, scanned):
            if value not in calories:
                calories.append(value)

    macros = {key: _first(pattern, scanned) for key, pattern in _PRIMARY_MACROS.items()}
    return EstimationResult(
        message_text=text,
        extracted_calories=calories,
        extracted_carbs=macros["carbs"],
        extracted_fat=macros["fat"],
        extracted_protein=macros["protein"],
    )


def _collect(pattern: re.Pattern[str], text: str) -> list[int]:
    values: list[int] = []
    for match in pattern.finditer(text):
        value = _to_int(match.group(1))
        if value not in values:
            values.append(value)
    return values


def _first(pattern: re.Pattern[str], text: str) -> int | None:
    match = pattern.search(text)
    if match is None:
        return None
    return _to_int(match.group(1))


def _to_int(raw: str) -> int:
    return int(raw.replace(",", ""))
