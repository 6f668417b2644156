"""Estimation and audit domain models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class EstimationResult:
    """Assistant reply plus the numbers recovered from it."""

    message_text: str
    extracted_calories: list[int] = field(default_factory=list)
    extracted_carbs: int | None = None
    extracted_fat: int | None = None
    extracted_protein: int | None = None


@dataclass(frozen=True)
class AuditRecord:
    """Non-reversible fingerprint of a message crossing the boundary."""

    hash: str
    contained_phi: bool
