"""PHI scrubbing for text that crosses the process boundary.

Every pattern is replaced with a bracketed token that no pattern can match,
and passes are repeated until the text stops changing, so sanitizing is
idempotent. Any internal failure returns the input unchanged (fail-open).
"""

import hashlib
import logging
import re

from calorie_assistant.domain.estimation import AuditRecord

_logger = logging.getLogger(__name__)

_MAX_PASSES = 5

_PHI_PATTERNS: list[tuple[str, re.Pattern[str], str]] = [
    (
        "email",
        re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"),
        "[EMAIL]",
    ),
    (
        "phone",
        re.compile(r"(?<!\w)(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b"),
        "[PHONE]",
    ),
    ("ssn", re.compile(r"\b\d{3}[-\s]?\d{2}[-\s]?\d{4}\b"), "[REDACTED]"),
    (
        "name",
        re.compile(
            r"\b(?i:my name is|i am|i'm|patient|dr\.?|doctor)\s+[A-Z][a-z]+\s+[A-Z][a-z]+"
        ),
        "[NAME]",
    ),
    (
        "birth_date",
        re.compile(
            r"\b(?:born|dob|birth\s*date|birthday)[:\s]+"
            r"\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}",
            re.IGNORECASE,
        ),
        "[DATE]",
    ),
    (
        "medical_record",
        re.compile(
            r"\b(?:mrn|medical record|patient id)[:\s#]*[A-Z0-9]+", re.IGNORECASE
        ),
        "[MRN]",
    ),
    (
        "address",
        re.compile(
            r"\b\d+\s+[A-Za-z]+\s+(?:street|st|avenue|ave|road|rd|drive|dr|lane|ln"
            r"|boulevard|blvd|way|court|ct)\b",
            re.IGNORECASE,
        ),
        "[ADDRESS]",
    ),
    (
        "health_condition",
        re.compile(
            r"\b(?:i have|diagnosed with|my|suffering from)\s+"
            r"(?:diabetes|cancer|hiv|aids|depression|anxiety|heart disease)",
            re.IGNORECASE,
        ),
        "[HEALTH_CONDITION]",
    ),
    (
        "medication",
        re.compile(
            r"\b(?:taking|prescribed|my medication)\s+[A-Za-z]+(?:\s*\d+\s*mg)?\b",
            re.IGNORECASE,
        ),
        "[MEDICATION]",
    ),
]

_CUTOFF_PHRASES = (
    "because i",
    "since i",
    "due to my",
    "for my",
    "to help with",
    "doctor said",
    "prescribed",
)


def sanitize_outbound(text: str) -> str:
    """Scrub PHI from text before it is sent to an external service."""
    return _sanitize(text)


def sanitize_inbound(text: str) -> str:
    """Scrub PHI the model may have echoed back in its reply."""
    return _sanitize(text)


def contains_phi(text: str) -> bool:
    """Return true if any PHI pattern matches the text."""
    return any(pattern.search(text) for _, pattern, _ in _PHI_PATTERNS)


def audit(text: str) -> AuditRecord:
    """Fingerprint text for the audit trail without retaining it."""
    digest = hashlib.sha256(text.encode("utf-8", errors="replace")).hexdigest()
    try:
        flagged = contains_phi(text)
    except Exception:
        _logger.exception("PHI detection failed; recording as not flagged")
        flagged = False
    return AuditRecord(hash=digest[:16], contained_phi=flagged)


def extract_food_content_only(text: str) -> str:
    """Aggressively reduce text to its food description.

    Short text without PHI is returned untouched. Longer text is sanitized
    and truncated at phrases that usually introduce personal context.
    """
    try:
        if len(text) < 100 and not contains_phi(text):
            return text
        sanitized = _sanitize(text)
        for phrase in _CUTOFF_PHRASES:
            index = sanitized.lower().find(phrase)
            if index > 0:
                sanitized = sanitized[:index].strip()
        return sanitized
    except Exception:
        _logger.exception("Food content extraction failed; returning input")
        return text


def _sanitize(text: str) -> str:
    try:
        current = text
        for _ in range(_MAX_PASSES):
            updated = _apply_patterns(current)
            if updated == current:
                break
            current = updated
        return current
    except Exception:
        _logger.exception("Sanitization failed; returning input unchanged")
        return text


def _apply_patterns(text: str) -> str:
    for _, pattern, replacement in _PHI_PATTERNS:
        text = pattern.sub(replacement, text)
    return text
