"""
Pydantic models for LLM payloads and the analysis response.
This is the source of truth for the JSON shapes; wire names are camelCase.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Category = Literal["GREAT", "GOOD", "RED_FLAG", "UNCLEAR"]
CATEGORIES: tuple[str, ...] = ("GREAT", "GOOD", "RED_FLAG", "UNCLEAR")

ClassifiedBy = Literal["code", "llm"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _coerce_category(value):
    if value is None:
        return None
    normalized = str(value).strip().upper().replace(" ", "_").replace("-", "_")
    if normalized == "REDFLAG":
        normalized = "RED_FLAG"
    return normalized if normalized in CATEGORIES else "UNCLEAR"


# --- LLM payloads ---


class PolicyInfo(CamelModel):
    name: Optional[str] = None
    insurer: Optional[str] = None
    sum_insured: Optional[str] = None
    policy_type: Optional[str] = None

    @field_validator("name", "insurer", "sum_insured", "policy_type", mode="before")
    @classmethod
    def _stringify(cls, value):
        if value is None:
            return None
        return str(value).strip() or None


class ExtractedFeature(CamelModel):
    id: str
    name: str
    value: Optional[str] = None
    numeric_value: Optional[float] = None
    unit: Optional[str] = None
    quote: str = ""
    reference: str = ""
    is_known_feature: bool = False

    @field_validator("id", "name", mode="before")
    @classmethod
    def _required_text(cls, value):
        if value is None or not str(value).strip():
            raise ValueError("must be a non-empty string")
        return str(value).strip()

    @field_validator("value", "unit", mode="before")
    @classmethod
    def _optional_text(cls, value):
        if value is None:
            return None
        return str(value)

    @field_validator("quote", "reference", mode="before")
    @classmethod
    def _text_or_empty(cls, value):
        return "" if value is None else str(value)


class ExtractionPayload(CamelModel):
    policy_info: PolicyInfo = Field(default_factory=PolicyInfo)
    features: list[ExtractedFeature] = Field(default_factory=list)


class Judgment(CamelModel):
    id: str
    category: Optional[Category] = None
    explanation: str = ""

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value):
        return _coerce_category(value)

    @field_validator("explanation", mode="before")
    @classmethod
    def _explanation(cls, value):
        return "" if value is None else str(value)


class JudgmentPayload(CamelModel):
    results: list[Judgment] = Field(default_factory=list)


# --- Pipeline ---


class ClassifiedFeature(CamelModel):
    id: str
    name: str
    value: Optional[str] = None
    quote: str = ""
    reference: str = ""
    category: Category
    explanation: str = ""
    classified_by: ClassifiedBy


# --- HTTP ---


class AnalyzeRequest(CamelModel):
    policy_text: Optional[str] = None


class FeatureOut(CamelModel):
    name: str
    policy_states: str
    reference: str
    explanation: str
    category: Category
    classified_by: ClassifiedBy


class Summary(CamelModel):
    great: int = 0
    good: int = 0
    red_flags: int = 0
    unclear: int = 0


class AnalysisMeta(CamelModel):
    version: str
    ruleset_version: str
    model: str
    processing_time_ms: int
    features_extracted: int
    classified_by_code: int
    classified_by_llm: int
    chunks: int = 1
    parse_status: str = "success"
    cached: bool = Field(False, alias="_cached")


class AnalysisResponse(CamelModel):
    """API response for POST /analyze-policy."""
    policy_name: str
    insurer: str
    sum_insured: str
    policy_type: str
    summary: Summary
    great_features: list[FeatureOut]
    good_features: list[FeatureOut]
    red_flags: list[FeatureOut]
    needs_clarification: list[FeatureOut]
    disclaimer: str
    meta: AnalysisMeta = Field(alias="_meta")
