"""Error taxonomy for calorie estimation requests."""


class CalorieAssistantError(Exception):
    """Base class for errors surfaced by the estimation pipeline."""

    error_code = "internal_error"


class ValidationError(CalorieAssistantError):
    """The inbound request is missing or malformed."""

    error_code = "invalid_request"


class ConfigurationError(CalorieAssistantError):
    """A required credential or setting is not configured."""

    error_code = "not_configured"


class ExternalServiceError(CalorieAssistantError):
    """A chat-service or nutrition-provider call failed."""

    error_code = "external_service_error"

    def __init__(self, service: str, message: str, status_code: int | None = None):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.status_code = status_code


class ConversationBudgetExceeded(CalorieAssistantError):
    """The conversation hit its turn-count or wall-clock cap."""

    error_code = "conversation_budget_exceeded"

    def __init__(self, reason: str, limit: float):
        super().__init__(f"Conversation budget exceeded ({reason} limit {limit})")
        self.reason = reason
        self.limit = limit
