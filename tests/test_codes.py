from __future__ import annotations

import copy
import random

import pytest

from igs_trails.io.schema import CodeRecord
from igs_trails.models import CodeInterval, CodeSpan, CodeTable, DataPoint
from igs_trails.trails.codes import (
    CursorScan,
    NaiveScan,
    annotate,
    build_multi_code_tables,
    build_single_code_table,
    code_data_at,
    get_scan_strategy,
)


def _trail(times: list[float]) -> list[DataPoint]:
    return [DataPoint(time=t, x=0.0, y=0.0) for t in times]


def test_annotate_tags_points_inside_interval() -> None:
    trail = _trail([0, 5, 10, 15])

    annotate(trail, [CodeInterval(label="A", start=4, end=11)])

    assert [point.codes for point in trail] == [set(), {"A"}, {"A"}, set()]


def test_annotate_skips_intervals_without_both_bounds() -> None:
    trail = _trail([0, 5, 10])

    annotate(
        trail,
        [
            CodeInterval(label="late", start=11, end=20),
            CodeInterval(label="early", start=-5, end=-1),
            CodeInterval(label="gap", start=6, end=9),
        ],
    )

    assert all(not point.codes for point in trail)


def test_annotate_deduplicates_labels_and_ignores_untimed_points() -> None:
    trail = _trail([1, 2])
    trail.insert(1, DataPoint(time=None, speech="?"))

    annotate(trail, [CodeInterval("A", 0, 3), CodeInterval("A", 1, 2)])

    assert trail[0].codes == {"A"}
    assert trail[1].codes == set()
    assert trail[2].codes == {"A"}


def test_cursor_scan_advances_and_falls_back_for_out_of_order_queries() -> None:
    table = CodeTable(
        code_name="talk",
        rows=[CodeSpan(0, 2), CodeSpan(4, 6), CodeSpan(8, 10)],
    )
    scan = CursorScan()

    assert scan.covers(table, 1)
    assert table.scan_cursor == 0
    assert scan.covers(table, 5)
    assert table.scan_cursor == 1
    assert not scan.covers(table, 7)
    assert scan.covers(table, 9)
    assert table.scan_cursor == 2
    assert scan.covers(table, 0.5)
    assert table.scan_cursor == 2

    table.reset_cursor()
    assert table.scan_cursor == 0


def test_cursor_and_naive_scans_agree_on_random_inputs() -> None:
    rng = random.Random(7)
    for _ in range(200):
        times = sorted(rng.sample(range(200), rng.randint(0, 40)))
        tables = []
        for code_index in range(rng.randint(1, 4)):
            rows = []
            for _row in range(rng.randint(0, 6)):
                start = rng.uniform(-20, 220)
                rows.append(CodeSpan(start, start + rng.uniform(-5, 40)))
            tables.append(CodeTable(code_name=f"code-{code_index}", rows=rows))

        naive_trail = _trail([float(t) for t in times])
        cursor_trail = copy.deepcopy(naive_trail)
        NaiveScan().annotate(naive_trail, copy.deepcopy(tables))
        CursorScan().annotate(cursor_trail, copy.deepcopy(tables))
        assert [p.codes for p in naive_trail] == [p.codes for p in cursor_trail]

        queries = [rng.uniform(-30, 250) for _ in range(30)]
        rng.shuffle(queries)
        naive, cursor = NaiveScan(), CursorScan()
        for table in tables:
            for query in queries:
                assert naive.covers(table, query) == cursor.covers(table, query)


def test_code_data_at_resolves_colors() -> None:
    tables = [
        CodeTable("a", rows=[CodeSpan(0, 10)]),
        CodeTable("b", rows=[CodeSpan(5, 15)]),
    ]
    colors = ["#6a3d9a", "#ff7f00"]

    none_active = code_data_at(tables, 20, colors, "#000000", "#a9a9a9")
    first_only = code_data_at(tables, 2, colors, "#000000", "#a9a9a9")
    second_only = code_data_at(tables, 12, colors, "#000000", "#a9a9a9", CursorScan())
    both = code_data_at(tables, 7, colors, "#000000", "#a9a9a9")

    assert none_active.has_code == [False, False]
    assert none_active.color == "#a9a9a9"
    assert first_only.color == "#6a3d9a"
    assert second_only.has_code == [False, True]
    assert second_only.color == "#ff7f00"
    assert both.has_code == [True, True]
    assert both.color == "#000000"


def test_build_code_tables_group_rows_by_normalized_label() -> None:
    records = [
        CodeRecord(code="Possession ", start=0, end=4),
        CodeRecord(code="talk", start=1, end=2),
        CodeRecord(code="possession", start=6, end=8),
    ]

    tables = build_multi_code_tables(records)
    single = build_single_code_table("Lesson-Graph", [CodeRecord(None, 1, 3)])

    assert [table.code_name for table in tables] == ["possession", "talk"]
    assert tables[0].rows == [CodeSpan(0, 4), CodeSpan(6, 8)]
    assert single.code_name == "lesson-graph"
    assert single.rows == [CodeSpan(1, 3)]


def test_get_scan_strategy_rejects_unknown_names() -> None:
    assert isinstance(get_scan_strategy("cursor"), CursorScan)
    with pytest.raises(ValueError, match="Unknown code scan strategy"):
        get_scan_strategy("binary")
