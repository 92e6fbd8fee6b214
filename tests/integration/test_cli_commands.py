"""Integration tests for CLI commands."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from courtside import __version__
from courtside.cli.main import app
from courtside.stream import StateStore


runner = CliRunner()


@pytest.fixture
def stream_file(tmp_path: Path, write_stream, direct_cross_records) -> Path:
    """Stream with a direct-then-cross reversal."""
    return write_stream(tmp_path / "testimony.jsonl", direct_cross_records)


def run_args(stream_file: Path, state_dir: Path, *extra: str) -> list[str]:
    return ["run", str(stream_file), "--state-dir", str(state_dir), *extra]


class TestVersionCommand:
    """Tests for the version command."""

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestRunCommand:
    """Tests for the run command."""

    def test_run_processes_stream(self, stream_file: Path, state_dir: Path):
        """'run' processes every event and persists the state."""
        result = runner.invoke(app, run_args(stream_file, state_dir))

        assert result.exit_code == 0
        assert "Processed 2 new event(s)" in result.stdout

        state = StateStore(state_dir).load("trial")
        assert state.events_processed == 2
        assert len(state.contradictions) == 1

    def test_run_is_resumable(self, stream_file: Path, state_dir: Path, write_stream, make_record):
        """A second run only processes appended events."""
        runner.invoke(app, run_args(stream_file, state_dir))

        again = runner.invoke(app, run_args(stream_file, state_dir))
        assert again.exit_code == 0
        assert "Processed 0 new event(s)" in again.stdout

        write_stream(stream_file, [make_record(credibility_signal="harmful")], append=True)
        more = runner.invoke(app, run_args(stream_file, state_dir))
        assert "Processed 1 new event(s)" in more.stdout
        assert StateStore(state_dir).load("trial").events_processed == 3

    def test_run_writes_actions(self, stream_file: Path, state_dir: Path, tmp_path: Path):
        """'--actions-out' writes this pass's actions as JSON."""
        out = tmp_path / "out" / "actions.json"

        result = runner.invoke(app, run_args(stream_file, state_dir, "--actions-out", str(out)))

        assert result.exit_code == 0
        actions = json.loads(out.read_text())
        assert len(actions) == 1
        assert actions[0]["id"] == "ACT-0001"
        assert actions[0]["type"] == "impeachment"
        assert actions[0]["priority"] == "P0"

    def test_run_with_trial_id(self, stream_file: Path, state_dir: Path):
        result = runner.invoke(app, run_args(stream_file, state_dir, "--trial-id", "smith-v-jones"))

        assert result.exit_code == 0
        assert StateStore(state_dir).exists("smith-v-jones")
        assert not StateStore(state_dir).exists("trial")

    def test_run_reports_malformed_lines(self, tmp_path: Path, state_dir: Path, write_stream, make_record):
        stream = write_stream(tmp_path / "testimony.jsonl", [make_record(), "{oops", make_record()])

        result = runner.invoke(app, run_args(stream, state_dir))

        assert result.exit_code == 0
        assert "Processed 2 new event(s)" in result.stdout
        assert "Skipped 1 malformed record(s)" in result.stdout

    def test_run_missing_source(self, tmp_path: Path, state_dir: Path):
        result = runner.invoke(app, run_args(tmp_path / "absent.jsonl", state_dir))

        assert result.exit_code == 1
        assert "not found" in result.stdout.lower()

    def test_run_corrupt_state(self, stream_file: Path, state_dir: Path):
        """Corrupt state halts with an error and is left in place."""
        store = StateStore(state_dir)
        state_dir.mkdir(parents=True)
        store.path_for("trial").write_text("{corrupt")

        result = runner.invoke(app, run_args(stream_file, state_dir))

        assert result.exit_code == 1
        assert "corrupt" in result.stdout.lower()
        assert store.path_for("trial").read_text() == "{corrupt"

    def test_run_with_policy_file(self, stream_file: Path, state_dir: Path, tmp_path: Path):
        config = tmp_path / "policy.yaml"
        config.write_text("momentum:\n  baseline: 30\n")

        result = runner.invoke(app, run_args(stream_file, state_dir, "--config", str(config)))

        assert result.exit_code == 0
        # 30 + 2 helpful, then -2 contradicted harm + 6 high contradiction
        assert StateStore(state_dir).load("trial").momentum_score == 36

    def test_run_invalid_policy_file(self, stream_file: Path, state_dir: Path, tmp_path: Path):
        config = tmp_path / "policy.yaml"
        config.write_text("momentum:\n  swing: 4\n")

        result = runner.invoke(app, run_args(stream_file, state_dir, "--config", str(config)))

        assert result.exit_code == 1
        assert "error" in result.stdout.lower()
        assert not StateStore(state_dir).exists("trial")


class TestStatusCommand:
    """Tests for the status command."""

    def test_status_shows_state(self, stream_file: Path, state_dir: Path):
        runner.invoke(app, run_args(stream_file, state_dir))

        result = runner.invoke(app, ["status", "--state-dir", str(state_dir)])

        assert result.exit_code == 0
        assert "Momentum" in result.stdout
        assert "Contradictions" in result.stdout
        assert "Derived Scores" in result.stdout
        assert "End-of-Day Strategy" in result.stdout
        assert "CTR-0001" in result.stdout
        assert "impeachment point" in result.stdout

    def test_status_without_state(self, state_dir: Path):
        result = runner.invoke(app, ["status", "--state-dir", str(state_dir)])

        assert result.exit_code == 1
        assert "no saved state" in result.stdout.lower()


class TestExploitCommand:
    """Tests for the exploit command."""

    def test_exploit_marks_contradiction(self, stream_file: Path, state_dir: Path):
        runner.invoke(app, run_args(stream_file, state_dir))

        result = runner.invoke(app, ["exploit", "CTR-0001", "--state-dir", str(state_dir)])

        assert result.exit_code == 0
        assert StateStore(state_dir).load("trial").contradictions[0].exploited is True

    def test_exploit_unknown_id(self, stream_file: Path, state_dir: Path):
        runner.invoke(app, run_args(stream_file, state_dir))

        result = runner.invoke(app, ["exploit", "CTR-0099", "--state-dir", str(state_dir)])

        assert result.exit_code == 1
        assert "not found" in result.stdout.lower()


class TestResolveCommand:
    """Tests for the resolve command."""

    def test_resolve_removes_action(self, stream_file: Path, state_dir: Path):
        runner.invoke(app, run_args(stream_file, state_dir))

        result = runner.invoke(app, ["resolve", "ACT-0001", "--state-dir", str(state_dir)])

        assert result.exit_code == 0
        assert StateStore(state_dir).load("trial").pending_actions == []

    def test_resolve_unknown_action(self, stream_file: Path, state_dir: Path):
        runner.invoke(app, run_args(stream_file, state_dir))

        result = runner.invoke(app, ["resolve", "ACT-0099", "--state-dir", str(state_dir)])

        assert result.exit_code == 1


class TestResetCommand:
    """Tests for the reset command."""

    def test_reset_with_yes(self, stream_file: Path, state_dir: Path):
        runner.invoke(app, run_args(stream_file, state_dir))

        result = runner.invoke(app, ["reset", "--yes", "--state-dir", str(state_dir)])

        assert result.exit_code == 0
        assert not StateStore(state_dir).exists("trial")

    def test_reset_declined(self, stream_file: Path, state_dir: Path):
        runner.invoke(app, run_args(stream_file, state_dir))

        result = runner.invoke(app, ["reset", "--state-dir", str(state_dir)], input="n\n")

        assert result.exit_code == 1
        assert StateStore(state_dir).exists("trial")

    def test_reset_without_state(self, state_dir: Path):
        result = runner.invoke(app, ["reset", "--yes", "--state-dir", str(state_dir)])

        assert result.exit_code == 0
