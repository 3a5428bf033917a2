from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

# 12 class paired: dark purple, orange, green, blue, red, yellow, brown, then the light variants.
DEFAULT_USER_COLORS = [
    "#6a3d9a",
    "#ff7f00",
    "#33a02c",
    "#1f78b4",
    "#e31a1c",
    "#ffff99",
    "#b15928",
    "#cab2d6",
    "#fdbf6f",
    "#b2df8a",
    "#a6cee3",
    "#fb9a99",
]


class PaletteConfig(BaseModel):
    user_colors: list[str] = Field(default_factory=lambda: list(DEFAULT_USER_COLORS), min_length=1)
    fallback_color: str = "#000000"
    conflict_color: str = "#000000"
    no_code_color: str = "#a9a9a9"


class StopsConfig(BaseModel):
    min_dwell: float = Field(default=1.0, ge=0.0)


class CodesConfig(BaseModel):
    scan_strategy: Literal["naive", "cursor"] = "naive"


class InputConfig(BaseModel):
    encoding: str = "utf-8-sig"
    fetch_timeout_seconds: float = Field(default=30.0, gt=0.0)
    examples_source: str | None = None


class OutputsConfig(BaseModel):
    tables_format: Literal["parquet", "csv"] = "parquet"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    palette: PaletteConfig = Field(default_factory=PaletteConfig)
    stops: StopsConfig = Field(default_factory=StopsConfig)
    codes: CodesConfig = Field(default_factory=CodesConfig)
    input: InputConfig = Field(default_factory=InputConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def _resolve_optional_source(value: str | None, base_dir: Path) -> str | None:
    if not value:
        return None
    if "://" in value:
        return value
    candidate = Path(value)
    if candidate.is_absolute():
        return str(candidate)
    return str((base_dir / candidate).resolve())


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    config = AppConfig.model_validate(data)
    base_dir = path.resolve().parent

    config.input.examples_source = _resolve_optional_source(
        config.input.examples_source or os.getenv("IGS_EXAMPLES_SOURCE"),
        base_dir,
    )
    return config
