"""End-to-end calorie estimation for one chat message."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from calorie_assistant.domain.conversation import ConversationMessage, Role
from calorie_assistant.domain.estimation import EstimationResult
from calorie_assistant.errors import ConfigurationError, ValidationError
from calorie_assistant.services import sanitizer
from calorie_assistant.services.audit import AuditService
from calorie_assistant.services.conversation import ConversationOrchestrator
from calorie_assistant.services.extraction import extract

_logger = logging.getLogger(__name__)


@dataclass
class CalorieEstimationService:
    """Sanitizes, orchestrates, and extracts for a single request.

    ``orchestrator`` is None when the chat-service credential is missing;
    requests then fail with ConfigurationError.
    """

    orchestrator: ConversationOrchestrator | None
    audit_service: AuditService

    async def estimate(
        self,
        message: str | None,
        history: Sequence[tuple[Role, str]] = (),
    ) -> EstimationResult:
        """Estimate calories and macros for a meal description."""
        if message is None or not message.strip():
            raise ValidationError("Message is required")
        if self.orchestrator is None:
            raise ConfigurationError("Chat service credential is not configured")

        self.audit_service.record_exchange("inbound", sanitizer.audit(message))
        sanitized_history = [
            ConversationMessage(role=role, content=sanitizer.sanitize_outbound(content))
            for role, content in history
        ]
        final_text = await self.orchestrator.run(
            sanitized_history, sanitizer.sanitize_outbound(message)
        )

        reply = sanitizer.sanitize_inbound(final_text)
        self.audit_service.record_exchange("outbound", sanitizer.audit(final_text))
        result = extract(reply)
        _logger.info(
            "Estimation complete: calories=%s macros_found=%s",
            len(result.extracted_calories),
            result.extracted_carbs is not None,
        )
        return result
