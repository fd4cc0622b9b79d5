"""
Document sanity checks that run before any LLM call.
A document that fails here never spends API budget.
"""

import logging
from typing import NamedTuple, Optional

from policy_analyzer.exceptions import DocumentTooShortError, NotAPolicyDocumentError
from policy_analyzer.ruleset import Ruleset

logger = logging.getLogger(__name__)

TOO_SHORT_MESSAGE = "Document too short. Please upload the complete policy document."
NOT_HEALTH_MESSAGE = (
    "This doesn't appear to be a health insurance policy document. "
    "Please upload a policy wording or schedule."
)


class ValidationResult(NamedTuple):
    valid: bool
    error: Optional[str] = None
    message: Optional[str] = None
    detected_type: Optional[str] = None


def keyword_hits(text: str, keywords: list[str]) -> list[str]:
    """Return the keywords present in text, in keyword-list order."""
    lowered = text.lower()
    return [kw for kw in keywords if kw in lowered]


def validate_document(text: str, ruleset: Ruleset) -> ValidationResult:
    """
    Check length, wrong-document keywords and health keyword density.

    Only the first `ruleset.scan_chars` characters are scanned for keywords.
    """
    if len(text) < ruleset.min_doc_length:
        return ValidationResult(False, "document_too_short", TOO_SHORT_MESSAGE)

    head = text[: ruleset.scan_chars]

    wrong_hits = keyword_hits(head, ruleset.wrong_doc_keywords)
    if len(wrong_hits) >= ruleset.min_wrong_doc_hits:
        detected = ", ".join(wrong_hits[:2])
        return ValidationResult(
            False,
            "invalid_document",
            f"This doesn't appear to be a health insurance policy. Detected: {detected}.",
            detected,
        )

    health_hits = keyword_hits(head, ruleset.health_keywords)
    if len(health_hits) < ruleset.min_health_keywords:
        return ValidationResult(False, "invalid_document", NOT_HEALTH_MESSAGE)

    logger.debug("Validation passed with %d health keywords", len(health_hits))
    return ValidationResult(True)


def ensure_valid(text: str, ruleset: Ruleset) -> None:
    """Raise the matching pipeline error if the document fails validation."""
    result = validate_document(text, ruleset)
    if result.valid:
        return
    logger.info("Validation failed: %s", result.message)
    if result.error == "document_too_short":
        raise DocumentTooShortError(result.message)
    raise NotAPolicyDocumentError(result.message, detected_type=result.detected_type)
