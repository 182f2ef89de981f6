"""Tests for healthtiers.loader -- JSONL input and output."""

import json

import pytest

from healthtiers.analytics.pipeline import process_history
from healthtiers.loader import LoaderError, read_metrics, read_raw_days, write_jsonl

from tests.conftest import DAY, days_from, make_raw_day, make_workout
from tests.conftest import write_jsonl as write_records


class TestReadRawDays:
    def test_round_trip(self, tmp_path):
        raw = [make_raw_day(d, workouts=[make_workout(d)]) for d in days_from(DAY, 3)]
        f = write_records(tmp_path / "raw.jsonl", raw)
        assert read_raw_days(f) == raw

    def test_blank_lines_skipped(self, tmp_path):
        f = tmp_path / "raw.jsonl"
        f.write_text('\n{"day": "2024-01-15"}\n\n')
        days = read_raw_days(f)
        assert len(days) == 1
        assert days[0].day == DAY
        assert days[0].steps is None

    def test_empty_file(self, tmp_path):
        f = tmp_path / "empty.jsonl"
        f.write_text("")
        assert read_raw_days(f) == []

    def test_invalid_json(self, tmp_path):
        f = tmp_path / "raw.jsonl"
        f.write_text('{"day": "2024-01-15"}\n{not json\n')
        with pytest.raises(LoaderError) as exc_info:
            read_raw_days(f)
        assert exc_info.value.line_num == 2
        assert "invalid JSON" in str(exc_info.value)

    def test_not_an_object(self, tmp_path):
        f = tmp_path / "raw.jsonl"
        f.write_text("[1, 2, 3]\n")
        with pytest.raises(LoaderError, match="expected a JSON object"):
            read_raw_days(f)

    def test_missing_day(self, tmp_path):
        f = tmp_path / "raw.jsonl"
        f.write_text('{"steps": 100}\n')
        with pytest.raises(LoaderError) as exc_info:
            read_raw_days(f)
        assert exc_info.value.line_num == 1
        assert exc_info.value.reason == "day: Field required"

    def test_bad_enum_value(self, tmp_path):
        entry = {
            "day": "2024-01-15",
            "sleep": [{"start": "2024-01-15T00:00:00", "end": "2024-01-15T06:00:00", "stage": "dozing"}],
        }
        f = tmp_path / "raw.jsonl"
        f.write_text(json.dumps(entry) + "\n")
        with pytest.raises(LoaderError, match=r"raw.jsonl:1: sleep.0.stage: "):
            read_raw_days(f)


class TestMetricsFiles:
    def test_write_and_read(self, tmp_path):
        history = process_history([make_raw_day(d) for d in days_from(DAY, 8)])
        f = tmp_path / "metrics.jsonl"
        assert write_jsonl(f, history) == 8
        assert read_metrics(f) == history

    def test_error_is_value_error(self, tmp_path):
        f = tmp_path / "metrics.jsonl"
        f.write_text('"just a string"\n')
        with pytest.raises(ValueError, match=r"metrics.jsonl:1: "):
            read_metrics(f)
