"""
Combine per-chunk extraction results into one payload.

For each policy-info field the longest non-empty value wins. Features are
keyed by id; the version with the longest quote wins and its missing fields
are filled in from the other versions.
"""

import logging
from typing import Optional

from policy_analyzer.schemas import ExtractedFeature, ExtractionPayload, PolicyInfo

logger = logging.getLogger(__name__)

_FILLABLE_FIELDS = ("value", "numeric_value", "unit", "reference")


def _longest(values: list[Optional[str]]) -> Optional[str]:
    present = [v for v in values if v]
    if not present:
        return None
    return max(present, key=len)


def merge_policy_info(infos: list[PolicyInfo]) -> PolicyInfo:
    return PolicyInfo(
        name=_longest([i.name for i in infos]),
        insurer=_longest([i.insurer for i in infos]),
        sum_insured=_longest([i.sum_insured for i in infos]),
        policy_type=_longest([i.policy_type for i in infos]),
    )


def _merge_versions(versions: list[ExtractedFeature]) -> ExtractedFeature:
    # max() keeps the first of equal-length quotes, so earlier chunks win ties
    best = max(versions, key=lambda f: len(f.quote))
    updates = {}
    for name in _FILLABLE_FIELDS:
        if getattr(best, name) in (None, ""):
            for other in versions:
                if getattr(other, name) not in (None, ""):
                    updates[name] = getattr(other, name)
                    break
    if any(f.is_known_feature for f in versions) and not best.is_known_feature:
        updates["is_known_feature"] = True
    return best.model_copy(update=updates) if updates else best


def merge_extractions(results: list[ExtractionPayload]) -> ExtractionPayload:
    grouped: dict[str, list[ExtractedFeature]] = {}
    for payload in results:
        for feature in payload.features:
            grouped.setdefault(feature.id.lower(), []).append(feature)

    features = [_merge_versions(versions) for versions in grouped.values()]
    total = sum(len(p.features) for p in results)
    logger.info("Merged %d extracted features from %d chunks into %d", total, len(results), len(features))

    return ExtractionPayload(
        policy_info=merge_policy_info([p.policy_info for p in results]),
        features=features,
    )
