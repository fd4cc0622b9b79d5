"""
Orchestrates the analysis pipeline:
  validate → chunk → extract → merge → classify → judge → reclassify → format

This is the only entry point for analyzing a policy document.
"""

import logging
import time
from typing import Optional

from policy_analyzer.cache import ResultCache, cache_key
from policy_analyzer.chunker import chunk_text
from policy_analyzer.config import VERSION, Settings, get_settings
from policy_analyzer.formatter import format_result, serialize
from policy_analyzer.llm import LLMClient, get_client
from policy_analyzer.merger import merge_extractions
from policy_analyzer.rules import classify_features, reclassify
from policy_analyzer.ruleset import get_ruleset
from policy_analyzer.schemas import AnalysisMeta
from policy_analyzer.services import extractor, judge
from policy_analyzer.validation import ensure_valid

logger = logging.getLogger(__name__)

_STATUS_RANK = {"success": 0, "partial": 1, "failure": 2}


def _log(step: str, message: str, start: float) -> None:
    logger.info("[%dms] [%s] %s", (time.monotonic() - start) * 1000, step, message)


def _worst_status(statuses: list[str]) -> str:
    return max(statuses, key=lambda s: _STATUS_RANK.get(s, 0), default="success")


def analyze(
    policy_text: str,
    client: Optional[LLMClient] = None,
    cache: Optional[ResultCache] = None,
    settings: Optional[Settings] = None,
) -> dict:
    """
    Analyze a health insurance policy and return the serialized response.

    Args:
        policy_text: Full text of the policy document.
        client:      LLM client; built from settings when omitted.
        cache:       Optional result cache. A hit is returned with _meta._cached = true.
        settings:    Runtime settings; read from the environment when omitted.

    Raises:
        DocumentTooShortError, NotAPolicyDocumentError: validation failed (no LLM call made).
        ConfigurationError: no API key / unknown provider or ruleset.
        UpstreamAPIError: the LLM provider failed or timed out.
        ResponseParseError: no chunk produced usable JSON.
    """
    start = time.monotonic()
    settings = settings or get_settings()
    ruleset = get_ruleset(settings.ruleset_version)
    version = f"{VERSION}/{ruleset.version}"

    _log("INIT", f"Received {len(policy_text)} chars", start)

    ensure_valid(policy_text, ruleset)
    _log("VALIDATE", "Passed", start)

    key = None
    if cache is not None:
        key = cache_key(policy_text, version)
        cached = cache.get(key, version)
        if cached is not None:
            cached["_meta"]["_cached"] = True
            _log("CACHE", "Hit", start)
            return cached

    client = client or get_client(settings)

    chunks = chunk_text(
        policy_text, settings.chunk_size, settings.chunk_overlap, settings.max_chunks
    )
    _log("CHUNK", f"{len(chunks)} chunk(s)", start)

    extractions = extractor.extract_all(chunks, client, ruleset, settings)
    extracted = merge_extractions([r.data for r in extractions])
    _log("EXTRACT", f"Found {len(extracted.features)} features", start)

    classified, needs_judgment = classify_features(extracted.features, ruleset)
    _log("CLASSIFY", f"Code classified: {len(classified)}, needs LLM: {len(needs_judgment)}", start)

    judgments = judge.request_judgments(
        classified, needs_judgment, extracted.policy_info, client, settings
    )
    features = judge.apply_judgments(classified, needs_judgment, judgments)
    features = reclassify(features, ruleset)
    _log("EXPLAIN", f"Got {len(judgments.data.results) if judgments.ok else 0} judgments", start)

    statuses = [r.status for r in extractions]
    statuses.append("partial" if not judgments.ok else judgments.status)
    if len(extractions) < len(chunks):
        statuses.append("partial")

    meta = AnalysisMeta(
        version=VERSION,
        ruleset_version=ruleset.version,
        model=getattr(client, "model", "") or settings.model,
        processing_time_ms=int((time.monotonic() - start) * 1000),
        features_extracted=len(extracted.features),
        classified_by_code=sum(1 for f in features if f.classified_by == "code"),
        classified_by_llm=sum(1 for f in features if f.classified_by == "llm"),
        chunks=len(chunks),
        parse_status=_worst_status(statuses),
    )
    result = serialize(format_result(extracted.policy_info, features, meta))
    _log("DONE", f"Total features: {len(features)}", start)

    if cache is not None:
        cache.put(key, result, version)
    return result
