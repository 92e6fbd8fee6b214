"""Objection rules and pattern-based trigger classification.

Upstream intake normally supplies ``objection_triggers`` on each event.
When it does not, ``classify_objection_triggers`` offers a phrase-pattern
fallback over the transcript text.
"""

import re
from dataclasses import dataclass

from ..models import ObjectionCategory, TrialPhase


@dataclass(frozen=True)
class ObjectionRule:
    """How to raise one category of objection."""

    category: ObjectionCategory
    basis: str
    suggested_language: str
    risk_level: str  # low, medium, high
    phases: tuple[TrialPhase, ...] = ()  # Empty means any phase


OBJECTION_RULES: dict[ObjectionCategory, ObjectionRule] = {
    rule.category: rule
    for rule in (
        ObjectionRule(
            ObjectionCategory.HEARSAY,
            "Hearsay - FRE 802",
            "Objection, hearsay. The witness is testifying to an out-of-court statement "
            "offered for the truth of the matter asserted.",
            "low",
        ),
        ObjectionRule(
            ObjectionCategory.SPECULATION,
            "Speculation/Lack of foundation - FRE 602",
            "Objection, speculation. The witness is speculating rather than testifying "
            "to personal knowledge.",
            "low",
        ),
        ObjectionRule(
            ObjectionCategory.LEADING,
            "Leading question - FRE 611(c)",
            "Objection, leading. Counsel is testifying for the witness.",
            "medium",
            (TrialPhase.DIRECT, TrialPhase.REDIRECT),
        ),
        ObjectionRule(
            ObjectionCategory.RELEVANCE,
            "Relevance - FRE 401/402",
            "Objection, relevance. This testimony has no bearing on any issue in this case.",
            "medium",
        ),
        ObjectionRule(
            ObjectionCategory.COMPOUND,
            "Compound question",
            "Objection, compound question. The question contains multiple questions "
            "that should be asked separately.",
            "low",
        ),
        ObjectionRule(
            ObjectionCategory.ARGUMENTATIVE,
            "Argumentative",
            "Objection, argumentative. Counsel is arguing rather than asking a question.",
            "medium",
            (TrialPhase.CROSS, TrialPhase.RECROSS),
        ),
        ObjectionRule(
            ObjectionCategory.NARRATIVE,
            "Calls for narrative response",
            "Objection, calls for a narrative response.",
            "low",
            (TrialPhase.DIRECT, TrialPhase.REDIRECT),
        ),
        ObjectionRule(
            ObjectionCategory.ASSUMES_FACTS,
            "Assumes facts not in evidence",
            "Objection, assumes facts not in evidence. The question assumes a fact "
            "that has not been established.",
            "low",
            (TrialPhase.CROSS, TrialPhase.RECROSS),
        ),
        ObjectionRule(
            ObjectionCategory.OPINION,
            "Opinion - FRE 701/702",
            "Objection. The witness is being asked for an opinion beyond their expertise "
            "or the scope of lay opinion.",
            "medium",
        ),
    )
}

RISK_ASSESSMENT = {
    "low": "Low risk - standard objection likely to be sustained if pattern applies",
    "medium": "Medium risk - may require foundation or argument; judge discretion applies",
    "high": "High risk - may appear obstructive; use strategically",
}

HEARSAY_NOTE = (
    " Note: hearsay exceptions may apply (business records, excited utterance, "
    "present sense impression)."
)

# Relevance has no reliable surface pattern; it comes from upstream only
TRIGGER_PATTERNS: dict[ObjectionCategory, list[re.Pattern]] = {
    ObjectionCategory.HEARSAY: [
        re.compile(r"\b(?:he|she|they)\s+(?:said|told|mentioned|stated)\b", re.I),
        re.compile(r"\bI\s+(?:heard|was\s+told)\s+that\b", re.I),
        re.compile(r"\b(?:someone|another\s+person)\s+(?:said|told)\b", re.I),
        re.compile(r"\baccording\s+to\s+(?:him|her|them|someone)\b", re.I),
    ],
    ObjectionCategory.SPECULATION: [
        re.compile(r"\bI\s+(?:think|believe|assume|guess|suppose)\b", re.I),
        re.compile(r"\b(?:probably|maybe|perhaps|possibly)\b", re.I),
        re.compile(r"\bI\s+would\s+(?:imagine|assume|guess)\b", re.I),
        re.compile(r"\bit\s+seems?\s+(?:like|to\s+me)\b", re.I),
    ],
    ObjectionCategory.LEADING: [
        re.compile(r"\bisn't\s+it\s+true\s+that\b", re.I),
        re.compile(r"\bwouldn't\s+you\s+agree\b", re.I),
        re.compile(r"\bthat's\s+correct,?\s+isn't\s+it\b", re.I),
    ],
    ObjectionCategory.COMPOUND: [
        re.compile(r"\?\s*(?:and|or)\s+(?:did|was|were|is|are|have|has)\b", re.I),
    ],
    ObjectionCategory.ARGUMENTATIVE: [
        re.compile(r"\bisn't\s+it\s+(?:really|actually)\s+true\s+that\s+you're\b", re.I),
        re.compile(r"\byou're\s+(?:just|simply|only)\s+(?:lying|making)\b", re.I),
        re.compile(r"\bso\s+(?:basically|essentially)\s+you(?:'re|'ve)\b", re.I),
    ],
    ObjectionCategory.NARRATIVE: [
        re.compile(r"\btell\s+(?:us|the\s+jury|me)\s+(?:everything|all\s+about|the\s+whole)\b", re.I),
        re.compile(r"\bdescribe\s+(?:everything|all\s+that|what\s+happened)\b", re.I),
    ],
    ObjectionCategory.ASSUMES_FACTS: [
        re.compile(r"\bafter\s+you\s+(?:stole|lied|cheated|defrauded)\b", re.I),
        re.compile(r"\bwhen\s+you\s+(?:committed|perpetrated)\b", re.I),
        re.compile(r"\bthe\s+(?:fraud|theft|crime)\s+you\s+committed\b", re.I),
    ],
    ObjectionCategory.OPINION: [
        re.compile(r"\bwhat\s+do\s+you\s+think\s+(?:caused|happened|motivated)\b", re.I),
        re.compile(r"\bin\s+your\s+opinion\b", re.I),
        re.compile(r"\bwould\s+you\s+say\s+that\b", re.I),
    ],
}


def rule_applies(rule: ObjectionRule, phase: TrialPhase) -> bool:
    """Check if an objection rule applies in a phase."""
    return not rule.phases or phase in rule.phases


def classify_objection_triggers(text: str, phase: TrialPhase) -> tuple[ObjectionCategory, ...]:
    """
    Classify objection triggers from statement text.

    Args:
        text: Transcript chunk
        phase: Trial phase of the statement

    Returns:
        Matching categories in rule order
    """
    matches = []
    for category, patterns in TRIGGER_PATTERNS.items():
        if not rule_applies(OBJECTION_RULES[category], phase):
            continue
        if any(pattern.search(text) for pattern in patterns):
            matches.append(category)
    return tuple(matches)


def risk_tradeoff_for(rule: ObjectionRule) -> str:
    """Describe the risk of raising an objection."""
    text = RISK_ASSESSMENT.get(rule.risk_level, "Assess based on judge and context")
    if rule.category == ObjectionCategory.HEARSAY:
        text += HEARSAY_NOTE
    return text
