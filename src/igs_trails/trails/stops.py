from __future__ import annotations

from typing import Sequence

from igs_trails.models import DataPoint

DEFAULT_MIN_DWELL = 1.0


def _same_place(point: DataPoint, anchor: DataPoint) -> bool:
    if not point.has_position or point.time is None:
        return False
    return (point.x, point.y) == (anchor.x, anchor.y)


def compute_stops(trail: Sequence[DataPoint], min_dwell: float = DEFAULT_MIN_DWELL) -> float:
    """Stamp stop lengths on runs of identical positions and return the longest run.

    Every point in a run gets its elapsed time since the run started. Only runs
    lasting at least ``min_dwell`` are marked as stopped. A point without a
    position ends the current run and keeps a stop length of 0.
    """
    for point in trail:
        point.stop_length = 0.0
        point.is_stopped = False

    longest = 0.0
    index = 0
    while index < len(trail):
        first = trail[index]
        if not first.has_position or first.time is None:
            index += 1
            continue
        end = index + 1
        while end < len(trail) and _same_place(trail[end], first):
            end += 1

        run = trail[index:end]
        duration = run[-1].time - first.time
        is_stop = len(run) > 1 and duration >= min_dwell
        for point in run:
            point.stop_length = point.time - first.time
            point.is_stopped = is_stop
        longest = max(longest, duration)
        index = end
    return longest
