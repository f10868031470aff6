import json
from datetime import date, datetime

import pytest
import yaml

from mnemos.domain.adaptive.models import TimeOfDay
from mnemos.domain.cards.models import Direction, ErrorType
from mnemos.infrastructure.adapters.snapshot import (
    SnapshotError,
    SnapshotModel,
    load_snapshot,
    parse_snapshot,
    to_domain,
)


@pytest.fixture
def snapshot_file(tmp_path, sample_snapshot):
    path = tmp_path / "learner.yaml"
    path.write_text(yaml.safe_dump(sample_snapshot))
    return path


def test_load_yaml(snapshot_file):
    snapshot = load_snapshot(snapshot_file)

    assert [c.id for c in snapshot.flashcards] == ["c1", "c2", "c3"]
    assert snapshot.now == datetime(2024, 3, 15, 10, 0)
    assert snapshot.current_streak == 3
    assert snapshot.last_study_date == date(2024, 3, 14)
    assert snapshot.difficulty.global_level == 5

    progress = snapshot.progress[0]
    assert progress.key == ("c1", Direction.FORWARD)
    assert progress.ease_factor == 2.36
    assert snapshot.mistakes[0].error_type == ErrorType.WRONG


def test_load_json(tmp_path, sample_snapshot):
    path = tmp_path / "learner.json"
    path.write_text(json.dumps(sample_snapshot))
    assert len(load_snapshot(path).sessions) == 4


def test_sessions_get_ids_and_time_of_day(sample_snapshot):
    snapshot = parse_snapshot(sample_snapshot)
    assert [s.session_id for s in snapshot.sessions] == [
        "session-1",
        "session-2",
        "session-3",
        "session-4",
    ]
    assert all(s.time_of_day == TimeOfDay.MORNING for s in snapshot.sessions)


def test_records_sorted_by_time(sample_snapshot):
    sample_snapshot["sessions"].reverse()
    snapshot = parse_snapshot(sample_snapshot)
    timestamps = [s.timestamp for s in snapshot.sessions]
    assert timestamps == sorted(timestamps)


def test_missing_next_review_defaults_to_snapshot_day():
    model = SnapshotModel.model_validate(
        {
            "now": "2024-05-01T08:00:00",
            "cards": [{"id": "c1", "front": "a", "back": "b"}],
            "progress": [{"card_id": "c1", "direction": "reverse"}],
        }
    )
    snapshot = to_domain(model)
    assert snapshot.progress[0].next_review_date == date(2024, 5, 1)
    assert snapshot.progress[0].direction == Direction.REVERSE


def test_unknown_card_ids_rejected(sample_snapshot):
    sample_snapshot["progress"][0]["card_id"] = "ghost"
    with pytest.raises(SnapshotError, match="ghost"):
        parse_snapshot(sample_snapshot)


def test_schema_errors(sample_snapshot):
    sample_snapshot["sessions"][0]["accuracy"] = 150
    with pytest.raises(SnapshotError, match="Invalid snapshot"):
        parse_snapshot(sample_snapshot)


@pytest.mark.parametrize("level", [0, 15])
def test_difficulty_level_out_of_range(sample_snapshot, level):
    sample_snapshot.setdefault("learner", {})["difficulty_level"] = level
    with pytest.raises(SnapshotError, match="Invalid snapshot"):
        parse_snapshot(sample_snapshot)


def test_missing_file(tmp_path):
    with pytest.raises(SnapshotError, match="not found"):
        load_snapshot(tmp_path / "nope.yaml")


def test_bad_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("cards: [unclosed\n")
    with pytest.raises(SnapshotError, match="Could not parse"):
        load_snapshot(path)


def test_top_level_must_be_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(SnapshotError, match="mapping"):
        load_snapshot(path)


def test_empty_file_is_empty_snapshot(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    snapshot = load_snapshot(path)
    assert snapshot.flashcards == []
    assert snapshot.sessions == []
