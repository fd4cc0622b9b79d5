"""
Prompt builder for the judgment call: categorize the features the rules could
not decide, and write a short explanation for every feature.
"""

from policy_analyzer.rules import RuleDecision
from policy_analyzer.schemas import ExtractedFeature, PolicyInfo

JUDGMENT_SCHEMA = {
    "type": "object",
    "properties": {
        "results": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "category": {"type": "string", "enum": ["GREAT", "GOOD", "RED_FLAG", "UNCLEAR"]},
                    "explanation": {"type": "string"},
                },
                "required": ["id", "category", "explanation"],
            },
        }
    },
    "required": ["results"],
}


def build_judgment_prompt(
    classified: list[tuple[ExtractedFeature, RuleDecision]],
    uncategorized: list[ExtractedFeature],
    policy_info: PolicyInfo,
) -> str:
    classified_list = "\n".join(
        f'- {feature.name}: {feature.value} → {decision.category} (Code assigned)\n'
        f'  Quote: "{feature.quote}"\n'
        f"  Reference: {feature.reference}"
        for feature, decision in classified
    ) or "None"

    uncategorized_list = "\n\n".join(
        f"- ID: {f.id}\n  Name: {f.name}\n  Value: {f.value}\n"
        f'  Quote: "{f.quote}"\n  Reference: {f.reference}'
        for f in uncategorized
    ) or "None - all features were categorized by code."

    all_ids = [feature.id for feature, _ in classified] + [f.id for f in uncategorized]
    uncategorized_ids = ", ".join(f.id for f in uncategorized) or "none"

    return f"""You are writing explanations for health insurance policy features and categorizing unknown features.

POLICY: {policy_info.name or "Health Insurance Policy"} by {policy_info.insurer or "Unknown Insurer"}

TASK 1: CATEGORIZE THESE UNKNOWN/UNIQUE FEATURES

{uncategorized_list}

CATEGORIZATION RULES:
- GREAT: Rare benefit (<20% of policies have it), significantly helps the customer
- GOOD: Useful, standard in the market
- RED_FLAG: Has hidden catches, restrictions, or is below industry standard
- UNCLEAR: Vague language, needs verification with insurer
Standard IRDAI exclusions (cosmetic, dental, war, adventure sports, ...) are NOT red flags.

TASK 2: WRITE EXPLANATIONS FOR ALL FEATURES (categorized + uncategorized)

ALREADY CATEGORIZED BY CODE:
{classified_list}

EXPLANATION RULES:
1. Write 1-2 sentences in simple English
2. Explain what this means for the customer practically
3. For GREAT: explain why this is better than typical policies
4. For GOOD: note this is standard/acceptable
5. For RED_FLAG: clearly explain the risk or problem
6. For UNCLEAR: explain what needs verification
7. Use actual numbers from the policy

RESPOND WITH valid JSON only: {{"results": [{{"id": "", "category": "", "explanation": ""}}]}}
For each feature ID ({", ".join(all_ids)}), provide:
- id: the feature ID
- category: only meaningful for uncategorized features ({uncategorized_ids})
- explanation: 1-2 sentence explanation for ALL features

JSON OUTPUT:"""
