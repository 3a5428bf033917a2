from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from igs_trails.config import AppConfig, CodesConfig
from igs_trails.errors import UnrecognizedFileFormat
from igs_trails.io.read import ParsedTable
from igs_trails.pipeline import load as load_module
from igs_trails.pipeline.load import EXAMPLE_DATASETS, load_example, load_paths, process_table
from igs_trails.session import Session


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def _movement_csv(tmp_path: Path, name: str) -> Path:
    return _write(
        tmp_path / name,
        "time,x,y\n0,1,1\n1,1,1\n2,1,1\n3,1,1\n4,5,5\n5,6,6\n",
    )


def test_load_paths_builds_trails_codes_and_floorplan(tmp_path: Path) -> None:
    movement = _movement_csv(tmp_path, "Jordan.csv")
    conversation = _write(
        tmp_path / "conversation.csv",
        "time,speaker,talk\n2.5,Jordan,Pass it\n4.5,Coach,Go\n",
    )
    codes = _write(tmp_path / "codes.csv", "code,start,end\nPossession,1,3\nBreak,3,4\n")
    floorplan = tmp_path / "floorplan.png"
    Image.new("RGB", (40, 20)).save(floorplan)
    session = Session()

    result = load_paths(session, [movement, conversation, codes, floorplan], AppConfig())

    assert result.alerts == []
    assert result.loaded[str(codes)] == "multi_code"
    assert result.loaded[str(floorplan)] == "floorplan"
    jordan = session.find_user("jordan")
    assert jordan is not None
    times = [point.time for point in jordan.data_trail]
    assert times == sorted(times)
    assert [point.time for point in jordan.data_trail if "possession" in point.codes] == [
        1.0,
        2.0,
        2.5,
        3.0,
    ]
    assert jordan.segments == ["possession", "break"]
    assert [entry.code for entry in session.code_entries] == ["possession", "break"]
    assert session.find_user("coach") is not None
    assert session.max_time == 5.0
    assert session.floorplan.width == 40


def test_codes_loaded_before_movement_are_applied_later(tmp_path: Path) -> None:
    codes = _write(tmp_path / "Talk.csv", "start,end\n0,1.5\n")
    movement = _movement_csv(tmp_path, "mei.csv")
    session = Session()
    config = AppConfig(codes=CodesConfig(scan_strategy="cursor"))

    result = load_paths(session, [codes, movement], config)

    assert result.loaded[str(codes)] == "single_code"
    mei = session.find_user("mei")
    assert mei is not None
    assert [point.time for point in mei.data_trail if point.codes] == [1.0]
    assert session.has_codes


def test_unrecognized_file_is_reported_without_mutating_session(tmp_path: Path) -> None:
    movement = _movement_csv(tmp_path, "sean.csv")
    bad = _write(tmp_path / "notes.csv", "foo,bar\n1,2\n")
    video = _write(tmp_path / "lesson.mp4", "")
    other = _write(tmp_path / "readme.txt", "hello")
    session = Session()

    result = load_paths(session, [movement, bad, video, other], AppConfig())

    assert len(result.alerts) == 2
    assert "correct column headers" in result.alerts[0]
    assert "accepted format" in result.alerts[1]
    assert [user.name for user in session.users] == ["sean"]
    assert session.video is not None
    assert session.video.platform == "File"


def test_process_table_raises_for_unrecognized_table() -> None:
    session = Session()
    table = ParsedTable(name="notes", fields=["foo", "bar"], rows=[{"foo": 1.0, "bar": 2.0}])

    with pytest.raises(UnrecognizedFileFormat):
        process_table(session, table, AppConfig())
    assert session.users == []


def test_load_paths_replaces_existing_data_by_default(tmp_path: Path) -> None:
    session = Session()
    config = AppConfig()
    load_paths(session, [_movement_csv(tmp_path, "adhir.csv")], config)

    load_paths(session, [_movement_csv(tmp_path, "blake.csv")], config)
    assert [user.name for user in session.users] == ["blake"]

    load_paths(session, [_movement_csv(tmp_path, "lily.csv")], config, replace=False)
    assert [user.name for user in session.users] == ["blake", "lily"]


def test_load_example_reads_local_directory(tmp_path: Path) -> None:
    example_dir = tmp_path / "example-3"
    example_dir.mkdir()
    Image.new("RGB", (30, 30)).save(example_dir / "floorplan.png")
    _write(example_dir / "conversation.csv", "time,speaker,talk\n1,Teacher,Hello\n")
    _movement_csv(example_dir, "teacher.csv")
    session = Session()

    result = load_example(session, "example-3", str(tmp_path), AppConfig())

    assert len(result.alerts) == 1
    assert "lesson-graph.csv" in result.alerts[0]
    teacher = session.find_user("teacher")
    assert teacher is not None
    assert any(point.speech == "Hello" for point in teacher.data_trail)
    assert session.video is not None
    assert session.video.params == {"videoId": EXAMPLE_DATASETS["example-3"].video_id}


def test_load_example_fetches_from_base_url(monkeypatch: pytest.MonkeyPatch) -> None:
    requested: list[str] = []

    def _fake_remote_table(url: str, timeout: float) -> ParsedTable:
        requested.append(url)
        if url.endswith("conversation.csv"):
            return ParsedTable(
                name="conversation",
                fields=["time", "speaker", "talk"],
                rows=[{"time": 1.0, "speaker": "Jordan", "talk": "Mine"}],
            )
        return ParsedTable(name="unused", fields=["foo"], rows=[{"foo": 1.0}])

    def _fake_floorplan(url: str, timeout: float) -> object:
        requested.append(url)
        raise load_module.IgsError("floor plan unavailable")

    monkeypatch.setattr(load_module, "read_remote_csv_table", _fake_remote_table)
    monkeypatch.setattr(load_module, "load_remote_floorplan_image", _fake_floorplan)
    session = Session()

    result = load_example(session, "example-1", "https://data.example/igs/", AppConfig())

    assert requested[0] == "https://data.example/igs/example-1/floorplan.png"
    assert "https://data.example/igs/example-1/jordan.csv" in requested
    assert result.alerts[0] == "floor plan unavailable"
    assert session.find_user("jordan") is not None


def test_load_example_rejects_unknown_ids() -> None:
    with pytest.raises(ValueError, match="Unknown example"):
        load_example(Session(), "example-9", "data", AppConfig())


def test_load_paths_reports_missing_file_and_keeps_going(tmp_path: Path) -> None:
    missing = tmp_path / "gone.csv"
    movement = _movement_csv(tmp_path, "jordan.csv")
    session = Session()

    result = load_paths(session, [missing, movement], AppConfig())

    assert result.alerts == [f"File not found: {missing}"]
    assert result.loaded == {str(movement): "movement"}
    assert [user.name for user in session.users] == ["jordan"]


def test_load_paths_reports_undecodable_file_and_keeps_going(tmp_path: Path) -> None:
    garbled = tmp_path / "bad.csv"
    garbled.write_bytes(b"time,x,y\n0,1,\xff\n")
    movement = _movement_csv(tmp_path, "jordan.csv")
    session = Session()

    result = load_paths(session, [garbled, movement], AppConfig())

    assert len(result.alerts) == 1
    assert "'bad'" in result.alerts[0]
    assert [user.name for user in session.users] == ["jordan"]


def test_load_paths_loads_clean_rows_around_extra_field_rows(tmp_path: Path) -> None:
    conversation = _write(
        tmp_path / "conversation.csv",
        "time,speaker,talk\n1,teacher,hello\n2,teacher,well, okay\n3,sean,bye\n",
    )
    session = Session()

    result = load_paths(session, [conversation], AppConfig())

    assert result.alerts == []
    assert [user.name for user in session.users] == ["teacher", "sean"]
    teacher = session.find_user("teacher")
    assert teacher is not None
    assert [point.speech for point in teacher.data_trail] == ["hello"]
