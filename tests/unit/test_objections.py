"""Tests for objection rules and trigger classification."""

import pytest

from courtside.engine import OBJECTION_RULES, classify_objection_triggers
from courtside.engine.objections import HEARSAY_NOTE, risk_tradeoff_for
from courtside.models import ObjectionCategory, TrialPhase


class TestClassifyObjectionTriggers:
    """Tests for classify_objection_triggers()."""

    @pytest.mark.parametrize("text,phase,category", [
        ("She told me he took the money.", TrialPhase.DIRECT, ObjectionCategory.HEARSAY),
        ("I heard that the books were cooked.", TrialPhase.CROSS, ObjectionCategory.HEARSAY),
        ("I think he was probably angry.", TrialPhase.DIRECT, ObjectionCategory.SPECULATION),
        ("Isn't it true that you were there?", TrialPhase.DIRECT, ObjectionCategory.LEADING),
        ("Tell the jury everything that happened.", TrialPhase.DIRECT, ObjectionCategory.NARRATIVE),
        ("In your opinion, was the contract valid?", TrialPhase.CROSS, ObjectionCategory.OPINION),
        ("After you stole the funds, where did you go?", TrialPhase.CROSS, ObjectionCategory.ASSUMES_FACTS),
        ("So basically you're admitting it?", TrialPhase.CROSS, ObjectionCategory.ARGUMENTATIVE),
    ])
    def test_patterns(self, text, phase, category):
        """Characteristic phrasing maps to its category."""
        assert category in classify_objection_triggers(text, phase)

    def test_leading_only_on_sponsoring_side(self):
        """Leading questions are proper on cross."""
        text = "Isn't it true that you were there?"

        assert ObjectionCategory.LEADING in classify_objection_triggers(text, TrialPhase.DIRECT)
        assert ObjectionCategory.LEADING not in classify_objection_triggers(text, TrialPhase.CROSS)

    def test_plain_testimony_has_no_triggers(self):
        assert classify_objection_triggers("I arrived at nine.", TrialPhase.DIRECT) == ()

    def test_relevance_never_classified(self):
        """Relevance comes from upstream only."""
        text = "My favorite color is blue."

        assert ObjectionCategory.RELEVANCE not in classify_objection_triggers(text, TrialPhase.DIRECT)

    def test_every_category_has_rule(self):
        """Each trigger category has a rule with language and basis."""
        for category in ObjectionCategory:
            rule = OBJECTION_RULES[category]
            assert rule.basis
            assert rule.suggested_language.startswith("Objection")

    def test_hearsay_risk_mentions_exceptions(self):
        rule = OBJECTION_RULES[ObjectionCategory.HEARSAY]

        assert risk_tradeoff_for(rule).endswith(HEARSAY_NOTE)

    def test_risk_by_level(self):
        rule = OBJECTION_RULES[ObjectionCategory.LEADING]

        assert risk_tradeoff_for(rule).startswith("Medium risk")
