"""Request and response models for the calorie estimation API."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from calorie_assistant.domain.estimation import EstimationResult


class HistoryMessage(BaseModel):
    """A prior chat turn supplied by the client."""

    role: Literal["user", "assistant"]
    content: str


class CalorieRequest(BaseModel):
    """Body of POST /api/ai/calories."""

    model_config = ConfigDict(populate_by_name=True)

    message: str | None = None
    conversation_history: list[HistoryMessage] | None = Field(
        default=None, alias="conversationHistory"
    )


class CalorieResponse(BaseModel):
    """Assistant reply with the numbers extracted from it."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    extracted_calories: list[int] = Field(alias="extractedCalories")
    extracted_carbs: int | None = Field(default=None, alias="extractedCarbs")
    extracted_fat: int | None = Field(default=None, alias="extractedFat")
    extracted_protein: int | None = Field(default=None, alias="extractedProtein")

    @classmethod
    def from_result(cls, result: EstimationResult) -> "CalorieResponse":
        return cls(
            message=result.message_text,
            extracted_calories=result.extracted_calories,
            extracted_carbs=result.extracted_carbs,
            extracted_fat=result.extracted_fat,
            extracted_protein=result.extracted_protein,
        )
