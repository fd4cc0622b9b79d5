"""
Deterministic classification of known features.

Threshold features are classified by their numeric value, keyword features
by the phrases in their value text. Anything the rules cannot decide goes
to the LLM judgment step.
"""

import logging
import re
from typing import NamedTuple, Optional

from policy_analyzer.ruleset import Ruleset
from policy_analyzer.schemas import ClassifiedFeature, ExtractedFeature

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"\d[\d,]*(?:\.\d+)?")

# Conversion factors into the unit a threshold table is written in.
_UNIT_FACTORS = {
    ("years", "months"): 12,
    ("years", "days"): 365,
    ("months", "days"): 30,
    ("days", "months"): 1 / 30,
    ("days", "years"): 1 / 365,
    ("months", "years"): 1 / 12,
}
_TIME_UNITS = {"years", "months", "days"}

# Bands from the top of the value range down.
_BANDS_HIGH_TO_LOW = {
    "lower": ("red_flag", "good", "great"),
    "higher": ("great", "good", "red_flag"),
}

_BAND_LABELS = {"great": "GREAT", "good": "GOOD", "red_flag": "RED_FLAG"}

STANDARD_EXCLUSION_NOTE = "This is a standard IRDAI exclusion that applies to most policies."


class RuleDecision(NamedTuple):
    category: str
    reason: str


def extract_number(text: Optional[str]) -> Optional[float]:
    """Return the first number in text, ignoring thousands separators."""
    if not text:
        return None
    match = _NUMBER_RE.search(text)
    if not match:
        return None
    try:
        return float(match.group(0).replace(",", ""))
    except ValueError:
        return None


def _unit_of(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    match = re.search(r"\b(year|month|day)s?\b", text.lower())
    return match.group(1) + "s" if match else None


def _unit_after_number(text: str) -> Optional[str]:
    match = re.search(r"\d[\d,]*(?:\.\d+)?\s*(year|month|day)s?\b", text.lower())
    return match.group(1) + "s" if match else None


def _convert(number: float, source_unit: Optional[str], rule_unit: str) -> Optional[float]:
    """Express number in rule_unit. None when the units cannot be converted."""
    if not source_unit or source_unit == rule_unit or rule_unit not in _TIME_UNITS:
        return number
    factor = _UNIT_FACTORS.get((source_unit, rule_unit))
    if factor is None:
        return None
    return number * factor


def _reaches(number: float, band: dict) -> bool:
    return "min" not in band or number >= band["min"]


def _describe_band(band: dict) -> str:
    if "min" in band and "max" in band:
        return f"{band['min']}-{band['max']}"
    if "min" in band:
        return f">={band['min']}"
    return f"<={band['max']}"


def _classify_threshold(config: dict, number: float) -> Optional[RuleDecision]:
    unit = config.get("unit", "")
    for band_name in _BANDS_HIGH_TO_LOW[config["direction"]]:
        band = config["thresholds"].get(band_name)
        if band is not None and _reaches(number, band):
            label = _BAND_LABELS[band_name]
            return RuleDecision(
                label,
                f"{number:g} {unit} is in the {label} range ({_describe_band(band)})",
            )
    return None


def _contains_phrase(text: str, phrase: str) -> bool:
    # "0%" must not match inside "20%", "covered" not inside "uncovered"
    prefix = r"(?<!\w)" if phrase[:1].isalnum() else ""
    return re.search(prefix + re.escape(phrase), text) is not None


def _classify_keywords(config: dict, value: str) -> Optional[RuleDecision]:
    lowered = value.lower()
    # Red flags are checked first so a catch is never masked by a generic "covered".
    for band_name in ("red_flag", "great", "good"):
        for phrase in config["rules"].get(band_name, []):
            if _contains_phrase(lowered, phrase):
                return RuleDecision(_BAND_LABELS[band_name], f"Value mentions '{phrase}'")
    return None


def classify_known_feature(
    feature_id: str,
    value: Optional[str],
    numeric_value: Optional[float],
    ruleset: Ruleset,
    unit: Optional[str] = None,
) -> Optional[RuleDecision]:
    """
    Classify one known feature.

    Returns None when feature_id is not in the ruleset, UNCLEAR when the
    value cannot be placed in any band.
    """
    config = ruleset.known_features.get(feature_id)
    if config is None:
        return None

    value_text = value or ""

    if "thresholds" in config:
        if numeric_value is not None:
            number = numeric_value
            source_unit = _unit_of(unit) or _unit_after_number(value_text)
        else:
            number = extract_number(value_text)
            source_unit = _unit_after_number(value_text) or _unit_of(unit)
        if number is not None:
            converted = _convert(number, source_unit, config.get("unit", ""))
            if converted is None:
                logger.debug("Cannot convert %s to %s for %s", source_unit, config.get("unit"), feature_id)
            else:
                decision = _classify_threshold(config, converted)
                if decision:
                    return decision

    if "rules" in config and value_text:
        decision = _classify_keywords(config, value_text)
        if decision:
            return decision

    return RuleDecision("UNCLEAR", "Could not determine category from value")


def classify_features(
    features: list[ExtractedFeature], ruleset: Ruleset
) -> tuple[list[tuple[ExtractedFeature, RuleDecision]], list[ExtractedFeature]]:
    """
    Split features into (classified by code, needs LLM judgment).
    """
    classified: list[tuple[ExtractedFeature, RuleDecision]] = []
    needs_judgment: list[ExtractedFeature] = []

    for feature in features:
        decision = None
        if feature.is_known_feature or feature.id in ruleset.known_features:
            decision = classify_known_feature(
                feature.id, feature.value, feature.numeric_value, ruleset, unit=feature.unit
            )
        if decision and decision.category != "UNCLEAR":
            classified.append((feature, decision))
        else:
            needs_judgment.append(feature)

    logger.info(
        "Rule classification: %d by code, %d need judgment", len(classified), len(needs_judgment)
    )
    return classified, needs_judgment


def matches_standard_exclusion(text: str, ruleset: Ruleset) -> Optional[str]:
    lowered = text.lower()
    for term in ruleset.standard_exclusions:
        if re.search(rf"\b{re.escape(term)}\b", lowered):
            return term
    return None


def reclassify(features: list[ClassifiedFeature], ruleset: Ruleset) -> list[ClassifiedFeature]:
    """
    Post-judgment pass: an LLM red flag that only restates a standard IRDAI
    exclusion is downgraded to GOOD.
    """
    result: list[ClassifiedFeature] = []
    for feature in features:
        if feature.classified_by == "llm" and feature.category == "RED_FLAG":
            term = matches_standard_exclusion(f"{feature.name} {feature.value or ''}", ruleset)
            if term:
                logger.info("Reclassifying '%s' to GOOD: standard exclusion '%s'", feature.id, term)
                explanation = f"{feature.explanation} {STANDARD_EXCLUSION_NOTE}".strip()
                feature = feature.model_copy(
                    update={"category": "GOOD", "classified_by": "code", "explanation": explanation}
                )
        result.append(feature)
    return result
