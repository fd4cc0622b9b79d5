"""
Versioned classification rulesets.

One ruleset per product-policy revision. Threshold tables and keyword lists
are business content; the classification logic in rules.py is shared by
every version.

Threshold bands are written with whole-number bounds. A value belongs to the
highest band whose "min" it reaches, so 36.5 months is still GOOD when
RED_FLAG starts at 37. "direction" says which end is better:
  * "lower"  — waiting periods: small values are GREAT
  * "higher" — coverage days, network size, bonus: large values are GREAT
"""

import copy
from dataclasses import dataclass, field

from policy_analyzer.exceptions import ConfigurationError

DEFAULT_RULESET_VERSION = "4.0"

# Upload-side check: generic insurance vocabulary, any line of business.
POLICY_KEYWORDS = [
    "insurance", "policy", "coverage", "premium", "insured", "beneficiary",
    "claim", "deductible", "exclusion", "sum insured", "policyholder",
    "indemnity", "underwriter", "endorsement", "waiting period", "co-pay",
    "health insurance", "life insurance", "term plan", "maturity", "nominee",
]
MIN_POLICY_KEYWORDS = 5

HEALTH_KEYWORDS = [
    "hospitalization", "sum insured", "cashless", "pre-existing",
    "waiting period", "room rent", "irdai", "tpa", "network hospital",
    "inpatient", "day care", "co-pay", "copay", "claim", "mediclaim",
    "health insurance", "policy wording", "insured person",
]

WRONG_DOC_KEYWORDS = [
    "life insurance", "term plan", "death benefit", "maturity benefit",
    "motor insurance", "vehicle insurance", "car insurance", "bike insurance",
    "bank statement", "transaction history", "account summary",
    "resume", "curriculum vitae", "invoice", "purchase order",
]

# Standard IRDAI exclusions. Every policy carries them, so they are never a red flag.
STANDARD_EXCLUSIONS = [
    "cosmetic", "plastic surgery", "dental", "spectacles", "contact lens",
    "obesity", "weight loss", "self-inflicted", "suicide attempt",
    "war", "terrorism", "nuclear", "adventure sports", "hazardous activities",
    "infertility", "ivf", "sterility", "change of gender",
    "experimental treatment", "unproven treatment",
]

_KNOWN_FEATURES_V4 = {
    "pedWaiting": {
        "display_name": "Pre-Existing Disease Waiting Period",
        "direction": "lower",
        "thresholds": {"great": {"max": 23}, "good": {"min": 24, "max": 36}, "red_flag": {"min": 37}},
        "unit": "months",
    },
    "specificIllnessWaiting": {
        "display_name": "Specific Illness Waiting Period",
        "direction": "lower",
        "thresholds": {"great": {"max": 11}, "good": {"min": 12, "max": 24}, "red_flag": {"min": 25}},
        "unit": "months",
    },
    "initialWaiting": {
        "display_name": "Initial Waiting Period",
        "direction": "lower",
        "thresholds": {"great": {"max": 0}, "good": {"min": 1, "max": 30}, "red_flag": {"min": 31}},
        "unit": "days",
    },
    "preHospitalization": {
        "display_name": "Pre-Hospitalization Coverage",
        "direction": "higher",
        "thresholds": {"great": {"min": 60}, "good": {"min": 30, "max": 59}, "red_flag": {"max": 29}},
        "unit": "days",
    },
    "postHospitalization": {
        "display_name": "Post-Hospitalization Coverage",
        "direction": "higher",
        "thresholds": {"great": {"min": 180}, "good": {"min": 60, "max": 179}, "red_flag": {"max": 59}},
        "unit": "days",
    },
    "roomRent": {
        "display_name": "Room Rent",
        "rules": {
            "great": ["no limit", "no cap", "any room", "no restriction"],
            "good": ["single private", "single ac", "single occupancy"],
            "red_flag": ["proportionate deduction", "daily limit", "capped at", "% of si"],
        },
    },
    "coPay": {
        "display_name": "Co-payment",
        "rules": {
            "great": ["no co-pay", "nil", "0%", "not applicable"],
            "good": ["optional", "voluntary", "senior citizen only", "above 60"],
            "red_flag": ["mandatory", "all claims", "all ages", "zone based"],
        },
    },
    "restore": {
        "display_name": "Restore/Recharge Benefit",
        "rules": {
            "great": ["unlimited", "same illness", "any illness", "100% restore"],
            "good": ["different illness", "unrelated illness", "once per year"],
            "red_flag": ["not available", "no restore", "not applicable"],
        },
    },
    "consumables": {
        "display_name": "Consumables Coverage",
        "rules": {
            "great": ["fully covered", "no sub-limit", "100% covered"],
            "good": ["covered", "included", "payable"],
            "red_flag": ["not covered", "excluded", "patient bears"],
        },
    },
    "daycare": {
        "display_name": "Day Care Procedures",
        "direction": "higher",
        "thresholds": {"great": {"min": 500}, "good": {"min": 140, "max": 499}, "red_flag": {"max": 139}},
        "unit": "procedures",
    },
    "networkHospitals": {
        "display_name": "Cashless Hospital Network",
        "direction": "higher",
        "thresholds": {"great": {"min": 10000}, "good": {"min": 5000, "max": 9999}, "red_flag": {"max": 4999}},
        "unit": "hospitals",
    },
    "ncb": {
        "display_name": "No Claim Bonus",
        "direction": "higher",
        "thresholds": {"great": {"min": 50}, "good": {"min": 10, "max": 49}, "red_flag": {"max": 9}},
        "unit": "percent per year",
    },
    "modernTreatments": {
        "display_name": "Modern Treatment Coverage",
        "rules": {
            "great": ["fully covered", "no sub-limit", "all treatments"],
            "good": ["covered", "included", "as per terms"],
            "red_flag": ["not covered", "excluded", "sub-limits apply"],
        },
    },
    "ayush": {
        "display_name": "AYUSH Treatment",
        "rules": {
            "great": ["full si", "no sub-limit", "100%"],
            "good": ["covered", "included", "up to"],
            "red_flag": ["not covered", "excluded"],
        },
    },
}

# Earlier revision: PED red flag only from 49 months, 37-48 still GOOD.
_KNOWN_FEATURES_V3_2 = copy.deepcopy(_KNOWN_FEATURES_V4)
_KNOWN_FEATURES_V3_2["pedWaiting"]["thresholds"] = {
    "great": {"max": 23},
    "good": {"min": 24, "max": 48},
    "red_flag": {"min": 49},
}


@dataclass(frozen=True)
class Ruleset:
    version: str
    known_features: dict
    min_doc_length: int = 500
    scan_chars: int = 10000
    min_health_keywords: int = 5
    min_wrong_doc_hits: int = 2
    health_keywords: list = field(default_factory=lambda: list(HEALTH_KEYWORDS))
    wrong_doc_keywords: list = field(default_factory=lambda: list(WRONG_DOC_KEYWORDS))
    standard_exclusions: list = field(default_factory=lambda: list(STANDARD_EXCLUSIONS))


RULESETS = {
    "4.0": Ruleset(version="4.0", known_features=_KNOWN_FEATURES_V4),
    "3.2": Ruleset(version="3.2", known_features=_KNOWN_FEATURES_V3_2),
}


def get_ruleset(version: str = DEFAULT_RULESET_VERSION) -> Ruleset:
    try:
        return RULESETS[version]
    except KeyError:
        raise ConfigurationError(
            f"Unknown ruleset version '{version}'. Available: {sorted(RULESETS)}"
        )
