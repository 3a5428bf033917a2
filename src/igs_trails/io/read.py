from __future__ import annotations

import io
import logging
import math
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import IO, Any

import pandas as pd
from PIL import Image

from igs_trails.errors import ImageLoadFailure, NetworkFetchFailure, UnrecognizedFileFormat
from igs_trails.models import Floorplan

LOGGER = logging.getLogger(__name__)

BOOLEAN_TEXT = {"true": True, "false": False}
# Free-text columns keep the cell text as written.
TEXT_FIELDS = {"talk"}


@dataclass(frozen=True)
class ParsedTable:
    name: str
    fields: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)


def clean_file_name(name: str) -> str:
    """Return the lower-cased file stem used to name users and single-code tables."""
    stem = PurePosixPath(str(name).replace("\\", "/")).name
    if "." in stem:
        stem = stem.rsplit(".", 1)[0]
    return stem.strip().lower()


def coerce_cell(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in BOOLEAN_TEXT:
        return BOOLEAN_TEXT[lowered]
    try:
        number = float(text)
    except ValueError:
        return text
    if not math.isfinite(number):
        return text
    return number


def _text_cell(value: Any) -> str | None:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return str(value).strip() or None


def normalize_header(header: Any) -> str:
    return str(header).strip().lower()


def read_csv_table(
    source: Path | str | IO[str],
    name: str | None = None,
    encoding: str = "utf-8-sig",
) -> ParsedTable:
    """Read a CSV with a header row into dynamically typed row mappings."""
    table_name = clean_file_name(name if name is not None else str(source))
    bad_lines: list[list[str]] = []

    def skip_bad_line(line: list[str]) -> None:
        bad_lines.append(line)

    try:
        # utf-8-sig strips BOM-prefixed headers commonly found in exported CSV files.
        frame = pd.read_csv(
            source,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding=encoding,
            engine="python",
            on_bad_lines=skip_bad_line,
        )
    except pd.errors.EmptyDataError:
        return ParsedTable(name=table_name)
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise UnrecognizedFileFormat(table_name) from exc
    if bad_lines:
        LOGGER.debug("Skipped %d rows with extra fields in %s", len(bad_lines), table_name)

    frame.columns = [normalize_header(column) for column in frame.columns]
    fields = list(dict.fromkeys(frame.columns))
    rows: list[dict[str, Any]] = []
    for record in frame.to_dict(orient="records"):
        row = {
            key: _text_cell(value) if key in TEXT_FIELDS else coerce_cell(value)
            for key, value in record.items()
        }
        if all(value is None for value in row.values()):
            continue
        rows.append(row)
    LOGGER.debug("Read %d rows with fields %s from %s", len(rows), fields, table_name)
    return ParsedTable(name=table_name, fields=fields, rows=rows)


def fetch_bytes(url: str, timeout: float = 30.0) -> bytes:
    try:
        with urllib.request.urlopen(url, timeout=timeout) as response:
            return response.read()
    except (urllib.error.URLError, OSError) as exc:
        raise NetworkFetchFailure(
            f"Error loading file from {url}. "
            "Please make sure you have a good internet connection"
        ) from exc


def fetch_csv(url: str, timeout: float = 30.0) -> str:
    payload = fetch_bytes(url, timeout=timeout)
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise NetworkFetchFailure(f"Error decoding CSV file from {url} as UTF-8") from exc


def read_remote_csv_table(url: str, timeout: float = 30.0) -> ParsedTable:
    payload = fetch_csv(url, timeout=timeout)
    return read_csv_table(io.StringIO(payload), name=url, encoding="utf-8")


def load_floorplan_image(source: Path | IO[bytes], name: str | None = None) -> Floorplan:
    label = name or str(source)
    try:
        with Image.open(source) as image:
            width, height = image.size
    except OSError as exc:
        raise ImageLoadFailure(
            f"Error loading floor plan image file '{label}'. "
            "Please make sure it is correctly formatted as a PNG or JPG image file."
        ) from exc
    return Floorplan(source=label, width=int(width), height=int(height))


def load_remote_floorplan_image(url: str, timeout: float = 30.0) -> Floorplan:
    payload = fetch_bytes(url, timeout=timeout)
    return load_floorplan_image(io.BytesIO(payload), name=url)
