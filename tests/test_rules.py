"""
Unit tests for threshold and keyword classification of known features,
and for the post-judgment standard-exclusion pass.
"""

import pytest

from policy_analyzer.exceptions import ConfigurationError
from policy_analyzer.rules import (
    _convert,
    classify_features,
    classify_known_feature,
    extract_number,
    reclassify,
)
from policy_analyzer.ruleset import get_ruleset
from policy_analyzer.schemas import ClassifiedFeature, ExtractedFeature


def _category(feature_id, value=None, numeric=None, ruleset=None, unit=None):
    ruleset = ruleset or get_ruleset("4.0")
    return classify_known_feature(feature_id, value, numeric, ruleset, unit=unit).category


# ---------------------------------------------------------------------------
# Threshold boundaries
# ---------------------------------------------------------------------------

class TestPedWaitingBoundaries:
    @pytest.mark.parametrize(
        "months, expected",
        [(0, "GREAT"), (23, "GREAT"), (24, "GOOD"), (36, "GOOD"), (37, "RED_FLAG"), (48, "RED_FLAG")],
    )
    def test_current_table(self, months, expected):
        assert _category("pedWaiting", f"{months} months", months) == expected

    @pytest.mark.parametrize("months, expected", [(23, "GREAT"), (37, "GOOD"), (48, "GOOD"), (49, "RED_FLAG")])
    def test_older_table_starts_red_flag_at_49(self, months, expected):
        ruleset = get_ruleset("3.2")
        assert _category("pedWaiting", f"{months} months", months, ruleset=ruleset) == expected

    def test_years_are_converted_to_months(self):
        assert _category("pedWaiting", "2 years", None) == "GOOD"
        assert _category("pedWaiting", "4 years", None) == "RED_FLAG"

    def test_numeric_value_with_unit_field(self):
        assert _category("pedWaiting", "three years", 3, unit="years") == "GOOD"

    def test_value_with_years_in_parentheses_uses_first_unit(self):
        assert _category("pedWaiting", "36 months (3 years)", None) == "GOOD"

    def test_days_are_converted_to_months(self):
        assert _category("pedWaiting", "730 days", None) == "GOOD"
        assert _category("pedWaiting", "1,460 days", None) == "RED_FLAG"

    def test_numeric_value_in_days(self):
        assert _category("pedWaiting", "three years", 1095, unit="days") == "GOOD"

    @pytest.mark.parametrize("months, expected", [(23.5, "GREAT"), (36.5, "GOOD"), (37.0, "RED_FLAG")])
    def test_values_between_whole_number_bounds(self, months, expected):
        assert _category("pedWaiting", f"{months} months", months) == expected


def test_months_convert_down_to_days():
    assert _category("initialWaiting", "1 month", None) == "GOOD"
    assert _category("initialWaiting", "2 months", None) == "RED_FLAG"


def test_unconvertible_unit_pair_is_none():
    assert _convert(2, "weeks", "months") is None
    assert _convert(730, "days", "months") == pytest.approx(24.333, abs=0.001)
    assert _convert(5, "years", "percent") == 5


class TestHigherIsBetter:
    @pytest.mark.parametrize(
        "days, expected",
        [(90, "GREAT"), (60, "GREAT"), (59, "GOOD"), (30, "GOOD"), (29, "RED_FLAG")],
    )
    def test_pre_hospitalization(self, days, expected):
        assert _category("preHospitalization", f"{days} days", days) == expected

    def test_network_hospitals_with_thousands_separator(self):
        assert _category("networkHospitals", "10,000+ hospitals", None) == "GREAT"
        assert _category("networkHospitals", "7,500 hospitals", None) == "GOOD"
        assert _category("networkHospitals", "4999 hospitals", None) == "RED_FLAG"

    def test_ncb_percent(self):
        assert _category("ncb", "50% per year", 50) == "GREAT"
        assert _category("ncb", "10% per year", 10) == "GOOD"
        assert _category("ncb", "5% per year", 5) == "RED_FLAG"
        assert _category("ncb", "9.5% per year", 9.5) == "RED_FLAG"

    def test_fraction_below_great_bound_is_good(self):
        assert _category("preHospitalization", "59.5 days", 59.5) == "GOOD"


class TestKeywordRules:
    def test_red_flag_wins_over_generic_coverage(self):
        assert _category("consumables", "Covered, but patient bears 10%") == "RED_FLAG"

    def test_room_rent(self):
        assert _category("roomRent", "No limit on room category") == "GREAT"
        assert _category("roomRent", "Single private AC room") == "GOOD"
        assert _category("roomRent", "Proportionate deduction applies") == "RED_FLAG"

    def test_co_pay(self):
        assert _category("coPay", "No co-pay") == "GREAT"
        assert _category("coPay", "20% for insured above 60 years") == "GOOD"
        assert _category("coPay", "10% mandatory co-pay on all claims") == "RED_FLAG"

    def test_undecidable_value_is_unclear(self):
        assert _category("restore", "As per policy terms") == "UNCLEAR"

    def test_threshold_feature_without_number_is_unclear(self):
        assert _category("pedWaiting", "As per schedule") == "UNCLEAR"


def test_unknown_feature_returns_none():
    assert classify_known_feature("wellnessRewards", "Yes", None, get_ruleset()) is None


def test_unknown_ruleset_version():
    with pytest.raises(ConfigurationError):
        get_ruleset("0.1")


def test_extract_number():
    assert extract_number("up to 1,00,000 INR") == 100000
    assert extract_number("2.5 years") == 2.5
    assert extract_number("no number") is None
    assert extract_number(None) is None


# ---------------------------------------------------------------------------
# classify_features / reclassify
# ---------------------------------------------------------------------------

def _feature(id, value, known=True, numeric=None, name=None):
    return ExtractedFeature(
        id=id, name=name or id, value=value, numeric_value=numeric, is_known_feature=known
    )


def test_classify_features_splits_code_and_llm(ruleset):
    features = [
        _feature("pedWaiting", "24 months", numeric=24),
        _feature("coPay", "As per schedule"),
        _feature("wellness", "Rewards points", known=False),
        _feature("roomRent", "No cap", known=False),  # known id, flag missing
    ]
    classified, needs = classify_features(features, ruleset)

    assert [(f.id, d.category) for f, d in classified] == [("pedWaiting", "GOOD"), ("roomRent", "GREAT")]
    assert [f.id for f in needs] == ["coPay", "wellness"]


def _classified(id, category, classified_by, name=None, value=None):
    return ClassifiedFeature(
        id=id,
        name=name or id,
        value=value,
        category=category,
        explanation="Explained.",
        classified_by=classified_by,
    )


def test_reclassify_downgrades_standard_exclusion(ruleset):
    features = [
        _classified("dental", "RED_FLAG", "llm", name="Dental Treatment", value="Excluded"),
        _classified("cosmetic", "RED_FLAG", "llm", name="Cosmetic Surgery Exclusion"),
    ]
    result = reclassify(features, ruleset)
    assert [f.category for f in result] == ["GOOD", "GOOD"]
    assert all(f.classified_by == "code" for f in result)
    assert "standard IRDAI exclusion" in result[0].explanation


def test_reclassify_leaves_real_red_flags(ruleset):
    features = [
        _classified("reward", "RED_FLAG", "llm", name="Wellness Reward Cap", value="Capped at 5%"),
        _classified("roomRent", "RED_FLAG", "code", name="Room Rent", value="Capped at 1% of SI"),
        _classified("dental", "GREAT", "llm", name="Dental OPD", value="Covered"),
    ]
    result = reclassify(features, ruleset)
    assert [f.category for f in result] == ["RED_FLAG", "RED_FLAG", "GREAT"]
