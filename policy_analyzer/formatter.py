"""
Bucket classified features into the four response arrays.
"""

from policy_analyzer.schemas import (
    AnalysisMeta,
    AnalysisResponse,
    ClassifiedFeature,
    FeatureOut,
    PolicyInfo,
    Summary,
)

DISCLAIMER = (
    "This analysis is for informational purposes only. Standard IRDAI exclusions apply. "
    "Please verify all details with your insurer before making decisions."
)

DEFAULT_POLICY_NAME = "Health Insurance Policy"
DEFAULT_INSURER = "Unknown Insurer"
DEFAULT_SUM_INSURED = "See policy schedule"
DEFAULT_POLICY_TYPE = "Individual/Family Floater"


def format_feature(feature: ClassifiedFeature) -> FeatureOut:
    return FeatureOut(
        name=feature.name,
        policy_states=feature.quote,
        reference=feature.reference,
        explanation=feature.explanation or f"{feature.name}: {feature.value or 'see policy'}",
        category=feature.category,
        classified_by=feature.classified_by,
    )


def bucket_features(features: list[ClassifiedFeature]) -> dict[str, list[ClassifiedFeature]]:
    """Partition features by category. Every feature lands in exactly one bucket."""
    buckets: dict[str, list[ClassifiedFeature]] = {
        "GREAT": [],
        "GOOD": [],
        "RED_FLAG": [],
        "UNCLEAR": [],
    }
    for feature in features:
        buckets[feature.category].append(feature)
    return buckets


def format_result(
    policy_info: PolicyInfo,
    features: list[ClassifiedFeature],
    meta: AnalysisMeta,
) -> AnalysisResponse:
    buckets = bucket_features(features)
    return AnalysisResponse(
        policy_name=policy_info.name or DEFAULT_POLICY_NAME,
        insurer=policy_info.insurer or DEFAULT_INSURER,
        sum_insured=policy_info.sum_insured or DEFAULT_SUM_INSURED,
        policy_type=policy_info.policy_type or DEFAULT_POLICY_TYPE,
        summary=Summary(
            great=len(buckets["GREAT"]),
            good=len(buckets["GOOD"]),
            red_flags=len(buckets["RED_FLAG"]),
            unclear=len(buckets["UNCLEAR"]),
        ),
        great_features=[format_feature(f) for f in buckets["GREAT"]],
        good_features=[format_feature(f) for f in buckets["GOOD"]],
        red_flags=[format_feature(f) for f in buckets["RED_FLAG"]],
        needs_clarification=[format_feature(f) for f in buckets["UNCLEAR"]],
        disclaimer=DISCLAIMER,
        meta=meta,
    )


def serialize(result: AnalysisResponse) -> dict:
    """JSON-ready dict with the camelCase wire names."""
    return result.model_dump(by_alias=True, mode="json")
