"""Shared pytest fixtures for Courtside tests."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

import pytest

BASE_TIME = datetime(2025, 3, 10, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_record() -> Callable[..., dict[str, Any]]:
    """Factory for raw testimony records.

    Each call gets a timestamp one minute after the previous call unless
    ``timestamp`` is given.
    """
    counter = {"n": 0}

    def _make(**overrides: Any) -> dict[str, Any]:
        record = {
            "timestamp": (BASE_TIME + timedelta(minutes=counter["n"])).isoformat(),
            "speaker_role": "witness",
            "speaker_name": "Maria Garcia",
            "phase": "direct",
            "text": "I was at the warehouse that night.",
            "credibility_signal": "neutral",
            "exhibit_refs": [],
            "topic_tags": [],
        }
        counter["n"] += 1
        record.update(overrides)
        return record

    return _make


@pytest.fixture
def make_event(make_record):
    """Factory for validated TestimonyEvents."""
    from courtside.models import TestimonyEvent

    def _make(**overrides: Any):
        return TestimonyEvent.from_dict(make_record(**overrides))

    return _make


@pytest.fixture
def write_stream() -> Callable[..., Path]:
    """Write records (dicts or raw strings) as JSON Lines."""

    def _write(path: Path, records: list, append: bool = False) -> Path:
        mode = "a" if append else "w"
        with open(path, mode, encoding="utf-8") as f:
            for record in records:
                line = record if isinstance(record, str) else json.dumps(record)
                f.write(line + "\n")
        return path

    return _write


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    """Directory for persisted state."""
    return tmp_path / "trial_state"


@pytest.fixture
def store(state_dir: Path):
    """StateStore over a temporary directory."""
    from courtside.stream import StateStore

    return StateStore(state_dir)


@pytest.fixture
def engine():
    """TrialEngine with default policy."""
    from courtside.engine import TrialEngine

    return TrialEngine()


@pytest.fixture
def fresh_state(engine):
    """Empty session state at the momentum baseline."""
    return engine.new_state()


@pytest.fixture
def direct_cross_records(make_record) -> list[dict[str, Any]]:
    """A witness helpful on direct, then harmful on cross, same topic."""
    return [
        make_record(
            phase="direct",
            text="I signed the contract on March 3rd.",
            credibility_signal="helpful",
            topic_tags=["contract_signing"],
        ),
        make_record(
            phase="cross",
            text="I never signed the contract.",
            credibility_signal="harmful",
            topic_tags=["contract_signing"],
        ),
    ]


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep environment overrides and the global settings out of tests."""
    from courtside.config import settings as settings_module

    for var in (
        "COURTSIDE_STATE_DIR",
        "COURTSIDE_POLL_INTERVAL",
        "COURTSIDE_TEXT_COMPARATOR",
        "COURTSIDE_LOG_FILE",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(settings_module, "_settings", None)
