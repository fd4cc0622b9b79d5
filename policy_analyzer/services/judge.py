"""
Step 2 of the pipeline: second LLM call for categories the rules could not
decide, plus explanations for every feature.

An unusable judgment response is not fatal: undecided features become
UNCLEAR and explanations fall back to "<name>: <value>".
"""

import logging

from policy_analyzer.config import Settings
from policy_analyzer.llm import LLMClient, generate_json
from policy_analyzer.parsing import ParseResult
from policy_analyzer.prompts.judgment_prompt import JUDGMENT_SCHEMA, build_judgment_prompt
from policy_analyzer.rules import RuleDecision
from policy_analyzer.schemas import (
    ClassifiedFeature,
    ExtractedFeature,
    Judgment,
    JudgmentPayload,
    PolicyInfo,
)

logger = logging.getLogger(__name__)


def request_judgments(
    classified: list[tuple[ExtractedFeature, RuleDecision]],
    needs_judgment: list[ExtractedFeature],
    policy_info: PolicyInfo,
    client: LLMClient,
    settings: Settings,
) -> ParseResult:
    if not classified and not needs_judgment:
        return ParseResult("success", data=JudgmentPayload())

    prompt = build_judgment_prompt(classified, needs_judgment, policy_info)
    result = generate_json(
        client,
        prompt,
        JudgmentPayload,
        max_tokens=settings.judgment_max_tokens,
        json_schema=JUDGMENT_SCHEMA,
    )
    if result.ok:
        logger.info("Judgment returned %d results (%s)", len(result.data.results), result.status)
    else:
        logger.warning("Judgment response unusable, falling back to defaults: %s", result.errors[:1])
    return result


def _fallback_explanation(feature: ExtractedFeature) -> str:
    return f"{feature.name}: {feature.value}" if feature.value else feature.name


def apply_judgments(
    classified: list[tuple[ExtractedFeature, RuleDecision]],
    needs_judgment: list[ExtractedFeature],
    judgments: ParseResult,
) -> list[ClassifiedFeature]:
    """Combine rule decisions and LLM judgments into the final feature list."""
    by_id: dict[str, Judgment] = {}
    if judgments.ok:
        for judgment in judgments.data.results:
            by_id.setdefault(judgment.id.lower(), judgment)

    features: list[ClassifiedFeature] = []

    for feature, decision in classified:
        judgment = by_id.get(feature.id.lower())
        features.append(
            ClassifiedFeature(
                id=feature.id,
                name=feature.name,
                value=feature.value,
                quote=feature.quote,
                reference=feature.reference,
                category=decision.category,
                explanation=(judgment.explanation if judgment else "") or _fallback_explanation(feature),
                classified_by="code",
            )
        )

    for feature in needs_judgment:
        judgment = by_id.get(feature.id.lower())
        features.append(
            ClassifiedFeature(
                id=feature.id,
                name=feature.name,
                value=feature.value,
                quote=feature.quote,
                reference=feature.reference,
                category=(judgment.category if judgment and judgment.category else "UNCLEAR"),
                explanation=(judgment.explanation if judgment else "") or _fallback_explanation(feature),
                classified_by="llm",
            )
        )

    return features
