from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

from igs_trails.config import AppConfig
from igs_trails.errors import IgsError, UnrecognizedFileFormat, UnsupportedFileType
from igs_trails.io.read import (
    ParsedTable,
    load_floorplan_image,
    load_remote_floorplan_image,
    read_csv_table,
    read_remote_csv_table,
)
from igs_trails.io.schema import CsvType, classify_table, parse_records
from igs_trails.models import CodeEntry, CodeTable, VideoSource
from igs_trails.session import Session
from igs_trails.trails.builder import ingest_conversation_rows, ingest_movement_rows
from igs_trails.trails.codes import (
    build_multi_code_tables,
    build_single_code_table,
    get_scan_strategy,
)

LOGGER = logging.getLogger(__name__)

CSV_SUFFIXES = {".csv"}
IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg"}
VIDEO_SUFFIXES = {".mp4"}


@dataclass(frozen=True)
class ExampleDataset:
    files: tuple[str, ...]
    video_id: str
    floorplan: str = "floorplan.png"
    conversation: str = "conversation.csv"


EXAMPLE_DATASETS: dict[str, ExampleDataset] = {
    "example-1": ExampleDataset(files=("jordan.csv", "possession.csv"), video_id="iiMjfVOj8po"),
    "example-2": ExampleDataset(
        files=("adhir.csv", "blake.csv", "jeans.csv", "lily.csv", "mae.csv"),
        video_id="pWJ3xNk1Zpg",
    ),
    "example-3": ExampleDataset(
        files=("teacher.csv", "lesson-graph.csv"),
        video_id="Iu0rxb-xkMk",
    ),
    "example-4": ExampleDataset(
        files=("cassandra.csv", "mei.csv", "nathan.csv", "sean.csv", "teacher.csv"),
        video_id="OJSZCK4GPQY",
    ),
}


@dataclass
class LoadResult:
    loaded: dict[str, str] = field(default_factory=dict)
    alerts: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.loaded)


def add_code_tables(session: Session, tables: Sequence[CodeTable], config: AppConfig) -> None:
    palette = config.palette.user_colors
    for table in tables:
        existing = next(
            (current for current in session.code_tables if current.code_name == table.code_name),
            None,
        )
        if existing is not None:
            existing.rows.extend(table.rows)
            continue
        session.code_tables.append(table)
        session.code_entries.append(
            CodeEntry(code=table.code_name, color=palette[len(session.code_entries) % len(palette)])
        )


def apply_codes(session: Session, config: AppConfig) -> None:
    """Re-apply every loaded code table to every user's trail."""
    if not session.code_tables:
        return
    strategy = get_scan_strategy(config.codes.scan_strategy)
    for user in session.users:
        strategy.annotate(user.data_trail, session.code_tables)
        user.refresh_segments()
    session.notify("codes")


def process_table(session: Session, table: ParsedTable, config: AppConfig) -> CsvType:
    """Classify one parsed CSV and merge it into the session.

    Raises ``UnrecognizedFileFormat`` before touching the session when no type matches.
    """
    csv_type = classify_table(table)
    if csv_type is CsvType.UNRECOGNIZED:
        raise UnrecognizedFileFormat(table.name)

    records = parse_records(table, csv_type)
    if csv_type is CsvType.MOVEMENT:
        ingest_movement_rows(session, table.name, records, config)
    elif csv_type is CsvType.CONVERSATION:
        ingest_conversation_rows(session, records, config)
    elif csv_type is CsvType.MULTI_CODE:
        add_code_tables(session, build_multi_code_tables(records), config)
    else:
        add_code_tables(session, [build_single_code_table(table.name, records)], config)

    apply_codes(session, config)
    LOGGER.info("Loaded %s as %s data (%d rows)", table.name, csv_type.value, len(records))
    return csv_type


def set_video_source(session: Session, source: VideoSource) -> None:
    session.clear_video()
    session.video = source
    session.notify("video")


def load_path(session: Session, path: Path, config: AppConfig) -> str:
    suffix = path.suffix.lower()
    if suffix in CSV_SUFFIXES:
        table = read_csv_table(path, name=path.name, encoding=config.input.encoding)
        return process_table(session, table, config).value
    if suffix in IMAGE_SUFFIXES:
        session.floorplan = load_floorplan_image(path)
        session.notify("floorplan")
        LOGGER.info(
            "Floor plan image loaded: %s (%dx%d)",
            path.name,
            session.floorplan.width,
            session.floorplan.height,
        )
        return "floorplan"
    if suffix in VIDEO_SUFFIXES:
        set_video_source(session, VideoSource(platform="File", params={"fileName": str(path)}))
        return "video"
    raise UnsupportedFileType(path.name)


def load_paths(
    session: Session,
    paths: Iterable[Path],
    config: AppConfig,
    replace: bool = True,
) -> LoadResult:
    """Load a batch of user files; one bad file never blocks the others."""
    if replace:
        session.clear_data()
    result = LoadResult()
    for path in paths:
        try:
            result.loaded[str(path)] = load_path(session, path, config)
        except FileNotFoundError:
            message = f"File not found: {path}"
            LOGGER.error("%s", message)
            result.alerts.append(message)
        except OSError as exc:
            message = f"Error reading file '{path}': {exc.strerror or exc}"
            LOGGER.error("%s", message)
            result.alerts.append(message)
        except IgsError as exc:
            LOGGER.error("%s", exc)
            result.alerts.append(str(exc))
    return result


def _is_url(source: str) -> bool:
    return "://" in source


def load_example(
    session: Session,
    example_id: str,
    source: str,
    config: AppConfig,
) -> LoadResult:
    """Load one of the bundled example datasets from a directory or base URL."""
    if example_id not in EXAMPLE_DATASETS:
        known = ", ".join(sorted(EXAMPLE_DATASETS))
        raise ValueError(f"Unknown example '{example_id}'. Expected one of: {known}")
    dataset = EXAMPLE_DATASETS[example_id]
    timeout = config.input.fetch_timeout_seconds

    session.clear_all()
    result = LoadResult()

    def locate(file_name: str) -> str:
        if _is_url(source):
            return f"{source.rstrip('/')}/{example_id}/{file_name}"
        return str(Path(source) / example_id / file_name)

    floorplan_location = locate(dataset.floorplan)
    try:
        if _is_url(source):
            session.floorplan = load_remote_floorplan_image(floorplan_location, timeout=timeout)
        else:
            session.floorplan = load_floorplan_image(Path(floorplan_location))
        session.notify("floorplan")
        result.loaded[floorplan_location] = "floorplan"
    except IgsError as exc:
        LOGGER.error("%s", exc)
        result.alerts.append(str(exc))

    for file_name in (dataset.conversation, *dataset.files):
        location = locate(file_name)
        try:
            if _is_url(source):
                table = read_remote_csv_table(location, timeout=timeout)
            else:
                table = read_csv_table(
                    Path(location),
                    name=file_name,
                    encoding=config.input.encoding,
                )
            result.loaded[location] = process_table(session, table, config).value
        except FileNotFoundError:
            message = f"Example file not found: {location}"
            LOGGER.error("%s", message)
            result.alerts.append(message)
        except IgsError as exc:
            LOGGER.error("%s", exc)
            result.alerts.append(str(exc))

    set_video_source(session, VideoSource(platform="Youtube", params={"videoId": dataset.video_id}))
    return result
