"""Tests for the per-event trial transition."""

import copy
import json
import random

import pytest

from courtside.engine import TrialEngine
from courtside.models import (
    ActionPriority,
    ActionType,
    CredibilitySignal,
    MomentumTrend,
    TrialPhase,
)


def random_records(make_record, count: int, seed: int = 7) -> list[dict]:
    """A reproducible mixed stream of witness and attorney statements."""
    rng = random.Random(seed)
    witnesses = ["Maria Garcia", "John Doe"]
    phases = ["direct", "cross", "redirect", "recross"]
    signals = ["helpful", "harmful", "neutral"]
    topics = ["alibi", "contract_signing", "damages", "motive"]

    records = []
    for _ in range(count):
        role = rng.choice(["witness", "witness", "witness", "attorney"])
        records.append(make_record(
            speaker_role=role,
            speaker_name=rng.choice(witnesses) if role == "witness" else "Ms. Chen",
            phase=rng.choice(phases),
            credibility_signal=rng.choice(signals),
            topic_tags=rng.sample(topics, rng.randint(0, 2)),
            exhibit_refs=rng.sample(["PX-1", "PX-2", "DX-7"], rng.randint(0, 1)),
            prejudice_risk=rng.random() < 0.05,
        ))
    return records


class TestProcess:
    """Tests for TrialEngine.process()."""

    def test_input_state_not_modified(self, engine, fresh_state, direct_cross_records):
        """process() returns a new state and leaves its input alone."""
        first = engine.process(fresh_state, direct_cross_records[0]).state
        before = json.dumps(first.to_dict(), sort_keys=True)

        result = engine.process(first, direct_cross_records[1])

        assert json.dumps(first.to_dict(), sort_keys=True) == before
        assert result.state is not first
        assert result.state.events_processed == 2

    def test_input_index_and_collections_untouched(self, engine, fresh_state, make_record):
        """Every collection the transition writes is the new state's own."""
        first = engine.process(fresh_state, make_record(
            credibility_signal="harmful", topic_tags=["alibi"], exhibit_refs=["DX-1"],
        )).state
        before = json.dumps(first.to_dict(), sort_keys=True)

        second = engine.process(first, make_record(
            phase="cross",
            credibility_signal="helpful",
            topic_tags=["alibi", "motive"],
            exhibit_refs=["PX-2"],
            prejudice_risk=True,
        )).state

        assert json.dumps(first.to_dict(), sort_keys=True) == before
        assert len(first.statements_for("Maria Garcia", "alibi")) == 1
        assert len(second.statements_for("Maria Garcia", "alibi")) == 2
        assert second.statements_for("Maria Garcia", "motive")
        assert first.statements_for("Maria Garcia", "motive") == []

    def test_invalid_record_rejected_without_change(self, engine, fresh_state, make_record):
        """Invalid input is reported and the state returned unchanged."""
        bad = make_record()
        del bad["phase"]

        result = engine.process(fresh_state, bad)

        assert result.rejected is True
        assert result.state is fresh_state
        assert result.actions == []
        assert fresh_state.events_processed == 0
        assert "phase" in result.changes[0]

    def test_tracks_phase_and_witness(self, engine, fresh_state, make_record):
        state = engine.process(fresh_state, make_record(phase="cross")).state
        state = engine.process(state, make_record(
            speaker_role="attorney", speaker_name="Ms. Chen", phase="cross",
        )).state

        assert state.current_phase == TrialPhase.CROSS
        assert state.current_witness == "Maria Garcia"
        assert state.last_event_at is not None

    def test_change_descriptions(self, engine, fresh_state, direct_cross_records):
        """Transitions describe what moved."""
        state = engine.process(fresh_state, direct_cross_records[0]).state

        result = engine.process(state, direct_cross_records[1])

        text = "\n".join(result.changes)
        assert "phase: direct -> cross" in text
        assert "Contradiction CTR-0001" in text
        assert "1 new action(s): 1 P0" in text

    def test_key_admission_for_harmful(self, engine, fresh_state, make_record):
        """An uncontradicted harmful statement is significant at default policy."""
        result = engine.process(fresh_state, make_record(
            credibility_signal="harmful", topic_tags=["damages"],
        ))

        admissions = result.state.key_admissions
        assert len(admissions) == 1
        assert admissions[0].credibility_signal == CredibilitySignal.HARMFUL
        assert admissions[0].momentum_delta == -3
        assert admissions[0].topic_tags == ["damages"]

    def test_no_key_admission_for_small_helpful(self, engine, fresh_state, make_record):
        """A lone helpful statement is below the significance threshold."""
        result = engine.process(fresh_state, make_record(credibility_signal="helpful"))

        assert result.state.key_admissions == []

    def test_neutral_never_key_admission(self, engine, fresh_state, make_record):
        result = engine.process(fresh_state, make_record(credibility_signal="neutral"))

        assert result.state.key_admissions == []

    def test_contradiction_is_key_admission(self, engine, fresh_state, direct_cross_records):
        result = engine.process_all(fresh_state, direct_cross_records)

        assert [k.event_index for k in result.state.key_admissions] == [1]
        assert result.state.key_admissions[0].momentum_delta == 4

    def test_from_settings(self):
        from courtside.config import Settings

        settings = Settings()
        settings.momentum.baseline = 40
        settings.detection.text_comparator = "negation"

        engine = TrialEngine.from_settings(settings)

        assert engine.new_state().momentum_score == 40


class TestProperties:
    """Invariants that hold over whole event sequences."""

    def test_momentum_always_bounded(self, engine, fresh_state, make_record):
        """momentum_score stays within [0, 100] at every step."""
        state = fresh_state
        for record in random_records(make_record, 200):
            state = engine.process(state, record).state
            assert 0 <= state.momentum_score <= 100
            assert all(0 <= v <= 100 for v in state.witness_credibility.values())

    def test_momentum_bounded_under_extreme_policy(self, fresh_state, make_record):
        from courtside.config import MomentumConfig

        engine = TrialEngine(MomentumConfig(helpful_delta=40, harmful_delta=70))
        state = fresh_state
        for record in random_records(make_record, 100, seed=3):
            state = engine.process(state, record).state
            assert 0 <= state.momentum_score <= 100

    @pytest.mark.parametrize("k", [0, 1, 17, 39, 40])
    def test_resume_reproduces_continuous_processing(
        self, engine, fresh_state, make_record, store, k
    ):
        """Persist at cursor k, reload, and finish: same state as one pass."""
        records = random_records(make_record, 40, seed=11)

        continuous = engine.process_all(fresh_state, records).state

        partial = engine.process_all(fresh_state, records[:k]).state
        store.save(partial, "trial")
        resumed_from = store.load("trial")
        assert resumed_from.events_processed == k
        resumed = engine.process_all(resumed_from, records[resumed_from.events_processed:]).state

        assert resumed.to_dict() == continuous.to_dict()

    def test_contradictions_are_never_rewritten(self, engine, fresh_state, make_record):
        """Later events only append; earlier records stay identical."""
        state = fresh_state
        seen: dict[str, dict] = {}

        for record in random_records(make_record, 150, seed=5):
            state = engine.process(state, record).state
            for contradiction in state.contradictions:
                snapshot = contradiction.to_dict()
                if contradiction.id in seen:
                    assert seen[contradiction.id] == snapshot
                seen[contradiction.id] = snapshot

        assert len(seen) == len(state.contradictions) > 0

    def test_only_exploited_changes_externally(self, engine, fresh_state, direct_cross_records):
        state = engine.process_all(fresh_state, direct_cross_records).state
        before = state.contradictions[0]

        state.mark_contradiction_exploited(before.id)
        after = state.contradictions[0]

        assert after.exploited is True
        assert after.statement_a == before.statement_a
        assert after.statement_b == before.statement_b

    def test_empty_slice_is_noop(self, engine, fresh_state, direct_cross_records):
        """Processing no events leaves the state byte-for-byte unchanged."""
        state = engine.process_all(fresh_state, direct_cross_records).state
        before = json.dumps(state.to_dict(), sort_keys=True)

        result = engine.process_all(state, [])

        assert result.state is state
        assert json.dumps(result.state.to_dict(), sort_keys=True) == before

    def test_consistent_helpful_no_contradiction(self, engine, fresh_state, make_record):
        result = engine.process_all(fresh_state, [
            make_record(phase="direct", credibility_signal="helpful", topic_tags=["contract"]),
            make_record(phase="cross", credibility_signal="helpful", topic_tags=["contract"]),
        ])

        assert result.state.contradictions == []

    def test_direct_cross_scenario(self, engine, fresh_state, make_record):
        """Helpful on direct then harmful on cross yields one P0 impeachment."""
        result = engine.process_all(fresh_state, [
            make_record(
                speaker_name="Witness A",
                phase="direct",
                credibility_signal="helpful",
                topic_tags=["contract"],
            ),
            make_record(
                speaker_name="Witness A",
                phase="cross",
                credibility_signal="harmful",
                topic_tags=["contract"],
            ),
        ])

        contradictions = result.state.contradictions
        assert len(contradictions) == 1
        assert contradictions[0].statement_a.phase == TrialPhase.CROSS
        assert contradictions[0].statement_b.phase == TrialPhase.DIRECT
        assert any(
            a.type == ActionType.IMPEACHMENT and a.priority == ActionPriority.P0
            for a in result.actions
        )

    def test_five_harmful_declining(self, engine, fresh_state, make_record):
        records = [make_record(credibility_signal="harmful") for _ in range(5)]

        state = engine.process_all(fresh_state, records).state

        assert state.contradictions == []
        assert state.momentum_trend == MomentumTrend.DECLINING

    def test_five_helpful_improving(self, engine, fresh_state, make_record):
        records = [make_record(credibility_signal="helpful") for _ in range(5)]

        state = engine.process_all(fresh_state, records).state

        assert state.momentum_trend == MomentumTrend.IMPROVING

    def test_trend_recovers_after_window(self, engine, fresh_state, make_record):
        """Old impacts fall out of the trend window."""
        records = (
            [make_record(credibility_signal="harmful") for _ in range(5)]
            + [make_record(credibility_signal="helpful") for _ in range(5)]
        )

        state = engine.process_all(fresh_state, records).state

        assert state.momentum_window == [2, 2, 2, 2, 2]
        assert state.momentum_trend == MomentumTrend.IMPROVING

    def test_batch_counts_rejected(self, engine, fresh_state, make_record):
        bad = make_record()
        del bad["text"]

        result = engine.process_all(fresh_state, [make_record(), bad, make_record()])

        assert result.rejected == 1
        assert result.state.events_processed == 2
        assert len(result.changes) == 2

    def test_deterministic(self, engine, fresh_state, make_record):
        """Same input, same output."""
        records = random_records(make_record, 60, seed=21)
        copies = copy.deepcopy(records)

        a = engine.process_all(fresh_state, records).state
        b = engine.process_all(fresh_state, copies).state

        assert a.to_dict() == b.to_dict()
