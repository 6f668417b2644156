"""Audit logging for messages crossing the privacy boundary."""

import logging
from dataclasses import dataclass
from typing import Protocol

from calorie_assistant.domain.estimation import AuditRecord

_logger = logging.getLogger(__name__)

AUDIT_ACTION = "PHI_ACCESS"
AUDIT_RESOURCE_TYPE = "ai_calorie_estimate"


class AuditRepository(Protocol):
    """Persistence interface for audit events."""

    def create_event(
        self,
        action: str,
        resource_type: str,
        description: str,
        status: str,
    ) -> None:
        """Create an audit event row."""


@dataclass
class AuditService:
    """Records the hash and PHI flag of every audited message.

    Raw text is never logged or persisted. When no repository is wired the
    record only goes to the application log.
    """

    repository: AuditRepository | None = None

    def record_exchange(self, direction: str, record: AuditRecord) -> None:
        """Log and optionally persist an audit record for one message."""
        _logger.info(
            "AI exchange audit: direction=%s hash=%s containedPHI=%s",
            direction,
            record.hash,
            record.contained_phi,
        )
        if self.repository is None:
            return
        try:
            self.repository.create_event(
                action=AUDIT_ACTION,
                resource_type=AUDIT_RESOURCE_TYPE,
                description=(
                    f"{direction} hash={record.hash} "
                    f"contained_phi={str(record.contained_phi).lower()}"
                ),
                status="success",
            )
        except Exception:
            _logger.exception("Failed to write audit event")
