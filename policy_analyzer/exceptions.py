"""
Error taxonomy for the analysis pipeline.
Services raise these; the router maps them to HTTP responses.
"""

from typing import Optional


class PolicyAnalyzerError(Exception):
    """Base class for every pipeline error."""


class DocumentTooShortError(PolicyAnalyzerError):
    error_code = "document_too_short"


class NotAPolicyDocumentError(PolicyAnalyzerError):
    error_code = "invalid_document"

    def __init__(self, message: str, detected_type: Optional[str] = None) -> None:
        super().__init__(message)
        self.detected_type = detected_type


class UpstreamAPIError(PolicyAnalyzerError):
    """The LLM provider failed: network error, HTTP error, or retries exhausted."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ResponseParseError(PolicyAnalyzerError):
    """The LLM returned nothing usable, even after repair."""


class ConfigurationError(PolicyAnalyzerError):
    """Missing API key or an unknown provider/ruleset. Always fatal."""


class MissingAPIKeyError(ConfigurationError):
    """The selected LLM provider has no API key."""


class PDFExtractionError(PolicyAnalyzerError):
    """
    Upload could not be turned into policy text.

    kind is one of PASSWORD_PROTECTED, SCANNED_PDF, CORRUPTED, NOT_A_POLICY, UNKNOWN.
    """

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(message)
        self.kind = kind
