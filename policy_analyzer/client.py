"""
Client for the /analyze-policy endpoint.

Turns the server response into the AnalysisResult shape the UI renders and
raises typed errors for rejected documents.
"""

import logging
import os
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from policy_analyzer.schemas import CamelModel

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = os.environ.get("POLICY_ANALYZER_URL", "http://localhost:8000")
DEFAULT_TIMEOUT_SECONDS = 120.0


class PolicyAnalysisError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, error_type: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type


class InvalidDocumentError(PolicyAnalysisError):
    def __init__(self, message: str, detected_type: Optional[str] = None) -> None:
        super().__init__(message, 400, "invalid_document")
        self.detected_type = detected_type


class PolicyFeature(BaseModel):
    name: str = ""
    quote: str = ""
    reference: str = ""
    explanation: str = ""


class ResultSummary(BaseModel):
    great: int = 0
    good: int = 0
    bad: int = 0
    unclear: int = 0


class FeatureBuckets(BaseModel):
    great: list[PolicyFeature] = Field(default_factory=list)
    good: list[PolicyFeature] = Field(default_factory=list)
    bad: list[PolicyFeature] = Field(default_factory=list)
    unclear: list[PolicyFeature] = Field(default_factory=list)


class AnalysisResult(CamelModel):
    policy_name: str
    insurer: str
    sum_insured: str
    policy_type: str
    document_type: str = "Policy Wording"
    summary: ResultSummary
    features: FeatureBuckets
    disclaimer: str


def _feature(raw: dict) -> PolicyFeature:
    return PolicyFeature(
        name=raw.get("name") or "",
        quote=raw.get("policyStates") or raw.get("quote") or "",
        reference=raw.get("reference") or "",
        explanation=raw.get("explanation") or "",
    )


def normalize_result(data: dict) -> AnalysisResult:
    """Map the server's response body onto AnalysisResult, filling UI defaults."""
    summary = data.get("summary") or {}
    return AnalysisResult(
        policy_name=data.get("policyName") or "Unknown Policy",
        insurer=data.get("insurer") or "Unknown",
        sum_insured=data.get("sumInsured") or "Not specified",
        policy_type=data.get("policyType") or "Not specified",
        summary=ResultSummary(
            great=summary.get("great") or 0,
            good=summary.get("good") or 0,
            bad=summary.get("redFlags") or summary.get("bad") or 0,
            unclear=summary.get("unclear") or 0,
        ),
        features=FeatureBuckets(
            great=[_feature(f) for f in data.get("greatFeatures") or []],
            good=[_feature(f) for f in data.get("goodFeatures") or []],
            bad=[_feature(f) for f in data.get("redFlags") or []],
            unclear=[_feature(f) for f in data.get("needsClarification") or []],
        ),
        disclaimer=data.get("disclaimer") or "This analysis is for informational purposes only.",
    )


def analyze_policy(
    policy_text: str,
    base_url: Optional[str] = None,
    http_client: Optional[httpx.Client] = None,
) -> AnalysisResult:
    """
    Send policy text to the analyzer and return the normalized result.

    Raises InvalidDocumentError when the server rejects the document as not a
    health insurance policy, PolicyAnalysisError for every other failure.
    """
    logger.info("Sending policy text for analysis (%d characters)", len(policy_text))

    owns_client = http_client is None
    client = http_client or httpx.Client(base_url=base_url or DEFAULT_BASE_URL, timeout=DEFAULT_TIMEOUT_SECONDS)
    try:
        response = client.post("/analyze-policy", json={"policyText": policy_text})
    except httpx.HTTPError as exc:
        logger.error("Analyzer request failed: %s", exc)
        raise PolicyAnalysisError(str(exc) or "Failed to analyze policy") from exc
    finally:
        if owns_client:
            client.close()

    try:
        data = response.json()
    except ValueError:
        raise PolicyAnalysisError("Failed to analyze policy", status_code=response.status_code)

    if isinstance(data, dict) and data.get("error"):
        logger.error("Analysis error: %s %s", data.get("error"), data.get("message"))
        if data["error"] == "invalid_document":
            raise InvalidDocumentError(
                data.get("message") or "This does not appear to be a health insurance policy.",
                data.get("detectedType"),
            )
        raise PolicyAnalysisError(
            data.get("message") or data["error"],
            status_code=response.status_code,
            error_type=data["error"],
        )

    if response.status_code >= 400 or not isinstance(data, dict):
        raise PolicyAnalysisError("Failed to analyze policy", status_code=response.status_code)

    logger.info("Analysis received: %s", data.get("policyName"))
    return normalize_result(data)
