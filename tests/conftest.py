"""
Shared fixtures: sample policy text, canned LLM responses and a fake client.
"""

import json
import threading

import pytest

from policy_analyzer.config import Settings, reset_settings
from policy_analyzer.ruleset import get_ruleset

SAMPLE_POLICY = """
CARE SUPREME HEALTH INSURANCE POLICY WORDING
Issued by Care Health Insurance Ltd. IRDAI Reg. No. 148.

Section 1. Definitions. Insured Person means the person named in the schedule.
Hospitalization means admission to a hospital for a minimum of 24 consecutive inpatient care hours.
Day care treatment means medical treatment undertaken in a hospital under general or local anaesthesia.

Section 2. Coverage. The Company will pay the medical expenses for inpatient hospitalization up to the
sum insured stated in the schedule. Cashless facility is available at every network hospital through our TPA.
Pre-hospitalization medical expenses are covered for 60 days before admission.
Room rent: proportionate deduction applies if the room category exceeds 1% of the sum insured per day.
Co-pay: applicable as per the policy schedule.

Section 3. Waiting Periods. Pre-existing diseases are covered after a waiting period of 36 months of
continuous coverage. Specific illnesses are covered after 24 months.

Section 4. Exclusions. Dental treatment is excluded unless requiring hospitalization.

Section 5. Claim procedure. Any claim must be notified within 48 hours of admission.
A second opinion from a specialist is available once per policy year.
""".strip()

EXTRACTION_RESPONSE = {
    "policyInfo": {
        "name": "Care Supreme",
        "insurer": "Care Health Insurance Ltd.",
        "sumInsured": "10 Lakh",
        "policyType": "Individual",
    },
    "features": [
        {
            "id": "pedWaiting",
            "name": "Pre-Existing Disease Waiting Period",
            "value": "36 months",
            "numericValue": 36,
            "unit": "months",
            "quote": "Pre-existing diseases are covered after a waiting period of 36 months",
            "reference": "Section 3",
            "isKnownFeature": True,
        },
        {
            "id": "preHospitalization",
            "name": "Pre-Hospitalization Coverage",
            "value": "60 days",
            "numericValue": 60,
            "unit": "days",
            "quote": "Pre-hospitalization medical expenses are covered for 60 days before admission",
            "reference": "Section 2",
            "isKnownFeature": True,
        },
        {
            "id": "roomRent",
            "name": "Room Rent",
            "value": "Proportionate deduction above 1% of sum insured per day",
            "numericValue": None,
            "unit": "",
            "quote": "proportionate deduction applies if the room category exceeds 1% of the sum insured",
            "reference": "Section 2",
            "isKnownFeature": True,
        },
        {
            "id": "coPay",
            "name": "Co-payment",
            "value": "Applicable as per the policy schedule",
            "numericValue": None,
            "unit": "",
            "quote": "Co-pay: applicable as per the policy schedule",
            "reference": "Section 2",
            "isKnownFeature": True,
        },
        {
            "id": "secondOpinion",
            "name": "Second Opinion",
            "value": "Once per policy year",
            "numericValue": None,
            "unit": "",
            "quote": "A second opinion from a specialist is available once per policy year",
            "reference": "Section 5",
            "isKnownFeature": False,
        },
        {
            "id": "dentalExclusion",
            "name": "Dental Treatment",
            "value": "Dental treatment is excluded",
            "numericValue": None,
            "unit": "",
            "quote": "Dental treatment is excluded unless requiring hospitalization",
            "reference": "Section 4",
            "isKnownFeature": False,
        },
    ],
}

JUDGMENT_RESPONSE = {
    "results": [
        {"id": "pedWaiting", "category": "GOOD", "explanation": "A 36 month wait is the market standard."},
        {"id": "preHospitalization", "category": "GREAT", "explanation": "60 days is generous."},
        {"id": "roomRent", "category": "RED_FLAG", "explanation": "A bigger room shrinks every claim."},
        {"id": "coPay", "category": "UNCLEAR", "explanation": "Check the schedule for the co-pay rate."},
        {"id": "secondOpinion", "category": "GREAT", "explanation": "Few policies offer this."},
        {"id": "dentalExclusion", "category": "RED_FLAG", "explanation": "Dental care is not paid."},
    ]
}


def is_judgment_prompt(prompt: str) -> bool:
    return "CATEGORIZE THESE UNKNOWN/UNIQUE FEATURES" in prompt


class FakeLLMClient:
    """Canned-response client: no network calls. Records every prompt."""

    model = "fake-model"

    def __init__(self, extraction=EXTRACTION_RESPONSE, judgment=JUDGMENT_RESPONSE, error=None, delay=0.0):
        self.extraction = extraction
        self.judgment = judgment
        self.error = error
        self.delay = delay
        self.calls: list[str] = []
        self._lock = threading.Lock()

    @staticmethod
    def _render(response) -> str:
        return response if isinstance(response, str) else json.dumps(response)

    def generate(self, prompt, max_tokens=4096, json_schema=None):
        with self._lock:
            self.calls.append(prompt)
        if self.delay:
            threading.Event().wait(self.delay)
        if self.error is not None:
            raise self.error
        if is_judgment_prompt(prompt):
            return self._render(self.judgment)
        return self._render(self.extraction)

    @property
    def extraction_calls(self) -> list[str]:
        return [p for p in self.calls if not is_judgment_prompt(p)]

    @property
    def judgment_calls(self) -> list[str]:
        return [p for p in self.calls if is_judgment_prompt(p)]


@pytest.fixture
def settings(monkeypatch):
    """Test settings: no real keys, no retry delay, one chunk for the sample policy.

    The cached get_settings() is reset on both sides so apps built in the test
    see the same environment.
    """
    monkeypatch.setenv("LLM_PROVIDER", "groq")
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("RETRY_DELAY_SECONDS", "0")
    monkeypatch.setenv("RULESET_VERSION", "4.0")
    monkeypatch.setenv("CHUNK_SIZE", "30000")
    monkeypatch.setenv("CHUNK_OVERLAP", "1000")
    monkeypatch.setenv("MAX_CHUNKS", "4")
    monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "30")
    reset_settings()
    yield Settings()
    reset_settings()


@pytest.fixture
def ruleset():
    return get_ruleset("4.0")


@pytest.fixture
def fake_client() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def sample_policy() -> str:
    return SAMPLE_POLICY
