"""
API endpoints for policy analysis.

POST    /analyze-policy         — JSON body {"policyText": "..."} → categorized features
POST    /analyze-policy/upload  — PDF or TXT upload → same pipeline
OPTIONS /analyze-policy         — CORS preflight, empty 200
GET     /health
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from policy_analyzer.cache import ResultCache
from policy_analyzer.config import VERSION, Settings, get_settings
from policy_analyzer.exceptions import (
    ConfigurationError,
    DocumentTooShortError,
    MissingAPIKeyError,
    NotAPolicyDocumentError,
    PDFExtractionError,
    UpstreamAPIError,
)
from policy_analyzer.llm import LLMClient
from policy_analyzer.reader import read_file
from policy_analyzer.schemas import AnalyzeRequest
from policy_analyzer.services import analyzer

logger = logging.getLogger(__name__)

router = APIRouter()

GENERIC_ERROR = "Analysis failed. Please try again."
BUSY_ERROR = "Service is busy. Please try again in a moment."
TIMEOUT_ERROR = "Analysis took too long. Please try again."
MISSING_KEY_ERROR = "API key not configured"
NOT_CONFIGURED_ERROR = "Service not configured"


def get_cache(request: Request) -> Optional[ResultCache]:
    return getattr(request.app.state, "cache", None)


def get_llm_client() -> Optional[LLMClient]:
    """None means: build the client from settings inside the pipeline."""
    return None


def _user_message(exc: Exception) -> str:
    text = str(exc).lower()
    if (isinstance(exc, UpstreamAPIError) and exc.status_code == 429) or "429" in text:
        return BUSY_ERROR
    if "timeout" in text or "timed out" in text or "abort" in text:
        return TIMEOUT_ERROR
    return GENERIC_ERROR


def error_response(exc: Exception) -> JSONResponse:
    """Map a pipeline exception to the JSON error body the UI expects."""
    if isinstance(exc, DocumentTooShortError):
        return JSONResponse(status_code=400, content={"error": exc.error_code, "message": str(exc)})
    if isinstance(exc, NotAPolicyDocumentError):
        return JSONResponse(
            status_code=400,
            content={"error": exc.error_code, "message": str(exc), "detectedType": exc.detected_type},
        )
    if isinstance(exc, ConfigurationError):
        logger.error("Configuration error: %s", exc)
        message = MISSING_KEY_ERROR if isinstance(exc, MissingAPIKeyError) else NOT_CONFIGURED_ERROR
        return JSONResponse(status_code=500, content={"error": message, "_debug": str(exc)})

    logger.exception("Analysis failed")
    return JSONResponse(status_code=500, content={"error": _user_message(exc), "_debug": str(exc)})


def _run(policy_text: str, client, cache, settings) -> JSONResponse:
    try:
        result = analyzer.analyze(policy_text, client=client, cache=cache, settings=settings)
    except Exception as exc:
        return error_response(exc)
    return JSONResponse(content=result)


@router.options("/analyze-policy")
def analyze_policy_preflight() -> Response:
    return Response(status_code=200)


@router.post("/analyze-policy")
def analyze_policy(
    payload: AnalyzeRequest,
    client: Optional[LLMClient] = Depends(get_llm_client),
    cache: Optional[ResultCache] = Depends(get_cache),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """
    Analyze health insurance policy text into GREAT / GOOD / RED_FLAG / UNCLEAR features.

    Returns 400 for documents that are too short or not health insurance
    policies (no LLM call is made), 500 for upstream or configuration failures.
    """
    if not payload.policy_text or not payload.policy_text.strip():
        return JSONResponse(status_code=400, content={"error": "No policy text provided"})
    return _run(payload.policy_text, client, cache, settings)


@router.post("/analyze-policy/upload")
async def analyze_policy_upload(
    policy_file: UploadFile = File(..., description="Policy document (PDF or TXT)"),
    client: Optional[LLMClient] = Depends(get_llm_client),
    cache: Optional[ResultCache] = Depends(get_cache),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Extract text from an uploaded policy, then run the same analysis."""
    try:
        file_bytes = await policy_file.read()
    except Exception:
        logger.exception("Failed to read upload")
        return JSONResponse(status_code=400, content={"error": "unknown", "message": "Failed to read uploaded file."})
    finally:
        await policy_file.close()

    try:
        policy_text = read_file(policy_file.filename or "", file_bytes)
    except PDFExtractionError as exc:
        logger.info("Upload rejected (%s): %s", exc.kind, exc)
        error = "invalid_document" if exc.kind == "NOT_A_POLICY" else exc.kind.lower()
        return JSONResponse(status_code=400, content={"error": error, "message": str(exc)})

    return await run_in_threadpool(_run, policy_text, client, cache, settings)


@router.get("/health")
def health():
    return {"status": "ok", "version": VERSION}
