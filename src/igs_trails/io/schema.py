from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Union

from igs_trails.io.read import ParsedTable

LOGGER = logging.getLogger(__name__)


class CsvType(str, Enum):
    MOVEMENT = "movement"
    CONVERSATION = "conversation"
    SINGLE_CODE = "single_code"
    MULTI_CODE = "multi_code"
    UNRECOGNIZED = "unrecognized"


HEADERS_MOVEMENT = ("time", "x", "y")
HEADERS_CONVERSATION = ("time", "speaker", "talk")
HEADERS_SINGLE_CODE = ("start", "end")
HEADERS_MULTI_CODE = ("code", "start", "end")


@dataclass(frozen=True)
class MovementRecord:
    time: float
    x: float
    y: float


@dataclass(frozen=True)
class ConversationRecord:
    time: float
    speaker: str
    talk: str


@dataclass(frozen=True)
class CodeRecord:
    code: str | None
    start: float
    end: float


Record = Union[MovementRecord, ConversationRecord, CodeRecord]


def is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def is_nonempty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def movement_row_for_type(row: Mapping[str, Any]) -> bool:
    return all(is_number(row.get(header)) for header in HEADERS_MOVEMENT)


def conversation_row_for_type(row: Mapping[str, Any]) -> bool:
    return (
        is_number(row.get("time"))
        and is_nonempty_string(row.get("speaker"))
        and row.get("talk") is not None
    )


def single_code_row_for_type(row: Mapping[str, Any]) -> bool:
    return is_number(row.get("start")) and is_number(row.get("end"))


def multi_code_row_for_type(row: Mapping[str, Any]) -> bool:
    return is_nonempty_string(row.get("code")) and single_code_row_for_type(row)


RowPredicate = Callable[[Mapping[str, Any]], bool]

# Multi-code headers are a strict superset of single-code headers, so it is tested first.
CLASSIFICATION_ORDER: list[tuple[CsvType, tuple[str, ...], RowPredicate]] = [
    (CsvType.MOVEMENT, HEADERS_MOVEMENT, movement_row_for_type),
    (CsvType.MULTI_CODE, HEADERS_MULTI_CODE, multi_code_row_for_type),
    (CsvType.SINGLE_CODE, HEADERS_SINGLE_CODE, single_code_row_for_type),
    (CsvType.CONVERSATION, HEADERS_CONVERSATION, conversation_row_for_type),
]

ROW_PREDICATES: dict[CsvType, RowPredicate] = {
    csv_type: predicate for csv_type, _headers, predicate in CLASSIFICATION_ORDER
}


def classify(fields: Iterable[str], rows: Iterable[Mapping[str, Any]]) -> CsvType:
    """Classify parsed CSV rows by header set and one clean row per type."""
    present = {str(field).strip().lower() for field in fields}
    materialized = list(rows)
    for csv_type, headers, predicate in CLASSIFICATION_ORDER:
        if not present.issuperset(headers):
            continue
        if any(predicate(row) for row in materialized):
            return csv_type
    return CsvType.UNRECOGNIZED


def classify_table(table: ParsedTable) -> CsvType:
    return classify(table.fields, table.rows)


def _to_record(csv_type: CsvType, row: Mapping[str, Any]) -> Record:
    if csv_type is CsvType.MOVEMENT:
        return MovementRecord(time=float(row["time"]), x=float(row["x"]), y=float(row["y"]))
    if csv_type is CsvType.CONVERSATION:
        return ConversationRecord(
            time=float(row["time"]),
            speaker=str(row["speaker"]).strip(),
            talk=str(row["talk"]),
        )
    code = row.get("code") if csv_type is CsvType.MULTI_CODE else None
    return CodeRecord(
        code=str(code).strip() if code is not None else None,
        start=float(row["start"]),
        end=float(row["end"]),
    )


def parse_records(table: ParsedTable, csv_type: CsvType) -> list[Record]:
    """Validate rows once for the detected type; malformed rows are skipped."""
    if csv_type is CsvType.UNRECOGNIZED:
        raise ValueError("Cannot parse records for an unrecognized table")
    predicate = ROW_PREDICATES[csv_type]
    records: list[Record] = []
    skipped = 0
    for row in table.rows:
        if not predicate(row):
            skipped += 1
            continue
        records.append(_to_record(csv_type, row))
    if skipped:
        LOGGER.debug("Skipped %d malformed %s rows in %s", skipped, csv_type.value, table.name)
    return records
