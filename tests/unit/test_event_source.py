"""Tests for the JSON Lines event source."""

import json
from pathlib import Path

import pytest

from courtside.exceptions import SourceUnavailableError
from courtside.stream import EventSource


class TestEventSource:
    """Tests for EventSource.read_all()."""

    def test_reads_events_in_file_order(self, tmp_path: Path, make_record, write_stream):
        """Valid lines become events in order."""
        path = write_stream(tmp_path / "stream.jsonl", [
            make_record(text="first"),
            make_record(text="second"),
        ])

        result = EventSource(path).read_all()

        assert [e.text for e in result.events] == ["first", "second"]
        assert result.warning_count == 0

    def test_blank_lines_ignored(self, tmp_path: Path, make_record, write_stream):
        """Blank lines are neither events nor warnings."""
        path = write_stream(tmp_path / "stream.jsonl", ["", make_record(), "   "])

        result = EventSource(path).read_all()

        assert len(result.events) == 1
        assert result.warnings == []

    def test_malformed_json_skipped_with_warning(self, tmp_path: Path, make_record, write_stream):
        """A broken line is skipped and reported with its line number."""
        path = write_stream(tmp_path / "stream.jsonl", [
            make_record(text="first"),
            '{"timestamp": "2025-03-10T09:',
            make_record(text="third"),
        ])

        result = EventSource(path).read_all()

        assert [e.text for e in result.events] == ["first", "third"]
        assert len(result.warnings) == 1
        assert result.warnings[0].line_number == 2
        assert "invalid JSON" in result.warnings[0].message

    def test_invalid_record_skipped_with_warning(self, tmp_path: Path, make_record, write_stream):
        """Schema violations are skipped the same way."""
        bad = make_record()
        del bad["speaker_name"]
        path = write_stream(tmp_path / "stream.jsonl", [bad, make_record()])

        result = EventSource(path).read_all()

        assert len(result.events) == 1
        assert result.warnings[0].line_number == 1
        assert "speaker_name" in str(result.warnings[0])

    def test_missing_file_unavailable(self, tmp_path: Path):
        """A missing stream raises SourceUnavailableError."""
        source = EventSource(tmp_path / "absent.jsonl")

        assert not source.exists()
        with pytest.raises(SourceUnavailableError):
            source.read_all()

    def test_sees_appended_lines(self, tmp_path: Path, make_record, write_stream):
        """Each read reflects the file at call time."""
        path = write_stream(tmp_path / "stream.jsonl", [make_record()])
        source = EventSource(path)
        assert len(source.read_all().events) == 1

        write_stream(path, [make_record(), make_record()], append=True)

        assert len(source.read_all().events) == 3

    def test_invalid_utf8_line_skipped_with_warning(self, tmp_path: Path, make_record):
        """Undecodable bytes cost one line, not the whole read."""
        path = tmp_path / "stream.jsonl"
        path.write_bytes(
            json.dumps(make_record(text="first")).encode("utf-8") + b"\n"
            + b'{"text": "\xff\xfe bad"}\n'
            + json.dumps(make_record(text="third")).encode("utf-8") + b"\n"
        )

        result = EventSource(path).read_all()

        assert [e.text for e in result.events] == ["first", "third"]
        assert len(result.warnings) == 1
        assert result.warnings[0].line_number == 2
        assert result.warnings[0].message == "invalid UTF-8"

    def test_non_ascii_text_decoded(self, tmp_path: Path, make_record, write_stream):
        """Valid multi-byte UTF-8 still reads normally."""
        path = write_stream(tmp_path / "stream.jsonl", [
            json.dumps(make_record(text="Señora García"), ensure_ascii=False),
        ])

        result = EventSource(path).read_all()

        assert result.events[0].text == "Señora García"
