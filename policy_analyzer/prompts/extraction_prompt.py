"""
Prompt builder for the extraction call: policy text (or one chunk of it) → raw features.

The LLM only extracts. Categorizing is left to the rules and the judgment call.
"""

from policy_analyzer.ruleset import Ruleset

EXTRACTION_SCHEMA = {
    "type": "object",
    "properties": {
        "policyInfo": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "insurer": {"type": "string"},
                "sumInsured": {"type": "string"},
                "policyType": {"type": "string"},
            },
        },
        "features": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "name": {"type": "string"},
                    "value": {"type": "string"},
                    "numericValue": {"type": "number", "nullable": True},
                    "unit": {"type": "string"},
                    "quote": {"type": "string"},
                    "reference": {"type": "string"},
                    "isKnownFeature": {"type": "boolean"},
                },
                "required": ["id", "name", "value", "quote", "reference", "isKnownFeature"],
            },
        },
    },
    "required": ["policyInfo", "features"],
}


def build_extraction_prompt(policy_text: str, ruleset: Ruleset, part: int = 1, total_parts: int = 1) -> str:
    known_features = "\n".join(
        f"- {feature_id}: {config['display_name']}"
        for feature_id, config in ruleset.known_features.items()
    )
    part_note = ""
    if total_parts > 1:
        part_note = (
            f"\nThis is PART {part} of {total_parts} of the document. Extract only what this part states; "
            "policyInfo fields may be empty if this part does not mention them.\n"
        )

    return f"""You are extracting features from an Indian health insurance policy document.
{part_note}
TASK: Extract ALL features mentioned in the policy with their exact values.

KNOWN FEATURES TO LOOK FOR:
{known_features}

EXTRACTION RULES:
1. For each feature found, extract:
   - id: the known feature ID if it matches (e.g. "pedWaiting"), otherwise a descriptive camelCase ID (e.g. "unique2xCover")
   - name: human-readable name
   - value: the exact value as stated (e.g. "36 months", "Single Private AC Room", "20% for age 60+")
   - numericValue: just the number if applicable (e.g. 36, 20), null if not numeric
   - unit: months, days, percent, hospitals, procedures, ...
   - quote: 10-30 words copied from the policy containing this information
   - reference: section, clause or page reference
   - isKnownFeature: true if it matches a known feature ID, false if it is unique/special

2. CAPTURE UNIQUE FEATURES: benefits not in the known list (like "2x Cover", "Compassionate Visit",
   "Second Opinion", "Wellness Rewards") are extracted with isKnownFeature: false.

3. IMPORTANT DISTINCTIONS:
   - Room rent with "proportionate deduction" is different from room rent with a limit
   - Co-pay that is "optional" or "only for seniors" is different from "mandatory for all"
   - Restore for "same illness" is different from "different illness only"

4. DO NOT categorize or explain. Just extract raw data.

Output ONLY valid JSON with this exact structure — no markdown fences, no commentary:
{{"policyInfo": {{"name": "", "insurer": "", "sumInsured": "", "policyType": ""}},
  "features": [{{"id": "", "name": "", "value": "", "numericValue": null, "unit": "",
                 "quote": "", "reference": "", "isKnownFeature": true}}]}}

---
POLICY TEXT:
{policy_text}
---

JSON OUTPUT:"""
