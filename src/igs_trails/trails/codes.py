from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from igs_trails.io.schema import CodeRecord
from igs_trails.models import CodeInterval, CodeSpan, CodeTable, DataPoint


def _timed(trail: Iterable[DataPoint]) -> list[DataPoint]:
    return [point for point in trail if point.time is not None]


def annotate(trail: Sequence[DataPoint], intervals: Iterable[CodeInterval]) -> None:
    """Tag every point inside each interval with the interval's label.

    For each interval the covered range runs from the first point at or after
    ``start`` to the last point at or before ``end``. Intervals without both
    bounds contribute nothing.
    """
    timed = _timed(trail)
    for interval in intervals:
        start_index = next(
            (index for index, point in enumerate(timed) if point.time >= interval.start),
            None,
        )
        end_index = next(
            (
                index
                for index in range(len(timed) - 1, -1, -1)
                if timed[index].time <= interval.end
            ),
            None,
        )
        if start_index is None or end_index is None:
            continue
        for point in timed[start_index : end_index + 1]:
            point.codes.add(interval.label)


class ScanStrategy:
    name: str

    def covers(self, table: CodeTable, time: float) -> bool:
        raise NotImplementedError

    def annotate(self, trail: Sequence[DataPoint], tables: Sequence[CodeTable]) -> None:
        raise NotImplementedError


class NaiveScan(ScanStrategy):
    name = "naive"

    def covers(self, table: CodeTable, time: float) -> bool:
        return any(row.contains(time) for row in table.rows)

    def annotate(self, trail: Sequence[DataPoint], tables: Sequence[CodeTable]) -> None:
        annotate(trail, [interval for table in tables for interval in table.intervals()])


class CursorScan(ScanStrategy):
    """Containment checks that assume non-decreasing query times.

    The interval at the table's cursor is tried first, then the next one. Anything
    else falls back to a full scan, so out-of-order queries stay correct.
    """

    name = "cursor"

    def covers(self, table: CodeTable, time: float) -> bool:
        rows = table.rows
        if not rows:
            return False
        cursor = min(table.scan_cursor, len(rows) - 1)
        if rows[cursor].contains(time):
            return True
        following = cursor + 1
        if following < len(rows) and rows[following].contains(time):
            table.advance_cursor(following)
            return True
        for index, row in enumerate(rows):
            if row.contains(time):
                table.advance_cursor(index)
                return True
        return False

    def annotate(self, trail: Sequence[DataPoint], tables: Sequence[CodeTable]) -> None:
        timed = _timed(trail)
        for table in tables:
            table.reset_cursor()
            for point in timed:
                if self.covers(table, point.time):
                    point.codes.add(table.code_name)


SCAN_STRATEGIES: dict[str, type[ScanStrategy]] = {
    NaiveScan.name: NaiveScan,
    CursorScan.name: CursorScan,
}


def get_scan_strategy(name: str) -> ScanStrategy:
    try:
        return SCAN_STRATEGIES[name]()
    except KeyError as exc:
        known = ", ".join(sorted(SCAN_STRATEGIES))
        raise ValueError(f"Unknown code scan strategy '{name}'. Expected one of: {known}") from exc


@dataclass(frozen=True)
class CodeData:
    has_code: list[bool]
    color: str


def code_data_at(
    tables: Sequence[CodeTable],
    time: float,
    colors: Sequence[str],
    conflict_color: str,
    default_color: str,
    strategy: ScanStrategy | None = None,
) -> CodeData:
    """Report which tables cover ``time`` and the colour to draw it with."""
    scan = strategy or NaiveScan()
    has_code: list[bool] = []
    color = default_color
    active = 0
    for index, table in enumerate(tables):
        covered = scan.covers(table, time)
        has_code.append(covered)
        if not covered:
            continue
        active += 1
        if active == 1:
            color = colors[index % len(colors)] if colors else default_color
        else:
            color = conflict_color
    return CodeData(has_code=has_code, color=color)


def normalize_code_name(value: str) -> str:
    return str(value).strip().lower()


def build_single_code_table(code_name: str, records: Sequence[CodeRecord]) -> CodeTable:
    return CodeTable(
        code_name=normalize_code_name(code_name),
        rows=[CodeSpan(start=record.start, end=record.end) for record in records],
    )


def build_multi_code_tables(records: Sequence[CodeRecord]) -> list[CodeTable]:
    tables: dict[str, CodeTable] = {}
    for record in records:
        if not record.code:
            continue
        name = normalize_code_name(record.code)
        table = tables.setdefault(name, CodeTable(code_name=name))
        table.rows.append(CodeSpan(start=record.start, end=record.end))
    return list(tables.values())
