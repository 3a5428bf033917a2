from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

import numpy as np
import pandas as pd

from igs_trails.models import User

TRAIL_COLUMNS = [
    "user",
    "color",
    "time",
    "x",
    "y",
    "speech",
    "stop_length",
    "is_stopped",
    "codes",
]
USER_COLUMNS = [
    "user",
    "color",
    "is_showing",
    "n_points",
    "n_speech",
    "n_stopped",
    "segments",
]


def _optional_float(value: float | None) -> float:
    return float(value) if value is not None else np.nan


def trails_frame(users: Sequence[User]) -> pd.DataFrame:
    rows: list[dict[str, Any]] = []
    for user in users:
        for point in user.data_trail:
            rows.append(
                {
                    "user": user.name,
                    "color": user.color,
                    "time": _optional_float(point.time),
                    "x": _optional_float(point.x),
                    "y": _optional_float(point.y),
                    "speech": point.speech,
                    "stop_length": float(point.stop_length),
                    "is_stopped": bool(point.is_stopped),
                    "codes": ";".join(sorted(point.codes)),
                }
            )
    return pd.DataFrame(rows, columns=TRAIL_COLUMNS)


def users_frame(users: Sequence[User]) -> pd.DataFrame:
    rows = [
        {
            "user": user.name,
            "color": user.color,
            "is_showing": user.is_showing,
            "n_points": len(user.data_trail),
            "n_speech": sum(1 for point in user.data_trail if point.has_speech),
            "n_stopped": sum(1 for point in user.data_trail if point.is_stopped),
            "segments": ";".join(user.segments),
        }
        for user in users
    ]
    return pd.DataFrame(rows, columns=USER_COLUMNS)


def write_table(df: pd.DataFrame, path: Path, fmt: str | None = None) -> Path:
    """Write ``df`` as parquet or csv; the format defaults to the path suffix."""
    fmt = fmt or path.suffix.lstrip(".").lower()
    path.parent.mkdir(parents=True, exist_ok=True)
    if fmt == "parquet":
        df.to_parquet(path, index=False)
        return path
    if fmt == "csv":
        df.to_csv(path, index=False)
        return path
    raise ValueError(f"Unsupported table format: {fmt}")


def write_summary(data: dict[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    # User and code names are written as-is rather than escaped.
    text = json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False)
    path.write_text(text + "\n", encoding="utf-8")
    return path
