from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class DataPoint:
    """One trail sample: a time plus any combination of position and speech."""

    time: float | None = None
    x: float | None = None
    y: float | None = None
    speech: str = ""
    stop_length: float = 0.0
    codes: set[str] = field(default_factory=set)
    is_stopped: bool = False

    @property
    def has_position(self) -> bool:
        return self.x is not None and self.y is not None

    @property
    def has_speech(self) -> bool:
        return bool(self.speech)


@dataclass
class User:
    name: str
    color: str
    is_showing: bool = True
    data_trail: list[DataPoint] = field(default_factory=list)
    segments: list[str] = field(default_factory=list)

    def refresh_segments(self) -> list[str]:
        seen: list[str] = []
        for point in self.data_trail:
            for code in sorted(point.codes):
                if code not in seen:
                    seen.append(code)
        self.segments = seen
        return seen


@dataclass(frozen=True)
class CodeSpan:
    start: float
    end: float

    def contains(self, time: float) -> bool:
        return self.start <= time <= self.end


@dataclass(frozen=True)
class CodeInterval:
    label: str
    start: float
    end: float


@dataclass
class CodeTable:
    code_name: str
    rows: list[CodeSpan] = field(default_factory=list)
    scan_cursor: int = 0

    def intervals(self) -> list[CodeInterval]:
        return [CodeInterval(self.code_name, row.start, row.end) for row in self.rows]

    def advance_cursor(self, index: int) -> None:
        if index > self.scan_cursor:
            self.scan_cursor = index

    def reset_cursor(self) -> None:
        self.scan_cursor = 0


@dataclass
class CodeEntry:
    code: str
    color: str
    enabled: bool = True


@dataclass
class Floorplan:
    source: str | None = None
    width: int | None = None
    height: int | None = None

    @property
    def is_loaded(self) -> bool:
        return self.width is not None and self.height is not None


@dataclass
class Timeline:
    start_time: float = 0.0
    end_time: float = 0.0
    curr_time: float = 0.0
    left_marker: float = 0.0
    right_marker: float = 0.0
    is_animating: bool = False

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def set_bounds(self, start_time: float, end_time: float) -> None:
        if end_time < start_time:
            raise ValueError(
                f"Timeline end ({end_time}) must not precede its start ({start_time})"
            )
        self.start_time = start_time
        self.end_time = end_time

    def reset(self, end_time: float) -> None:
        self.set_bounds(0.0, end_time)
        self.curr_time = 0.0
        self.left_marker = 0.0
        self.right_marker = end_time


@dataclass(frozen=True)
class VideoSource:
    platform: str
    params: dict[str, Any] = field(default_factory=dict)
