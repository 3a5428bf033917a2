from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from igs_trails.config import DEFAULT_USER_COLORS, load_config


def test_default_config_file_matches_model_defaults(monkeypatch) -> None:
    monkeypatch.delenv("IGS_EXAMPLES_SOURCE", raising=False)
    cfg_path = Path(__file__).resolve().parents[1] / "configs/default.yaml"
    cfg = load_config(cfg_path)

    assert cfg.palette.user_colors == DEFAULT_USER_COLORS
    assert cfg.stops.min_dwell == 1.0
    assert cfg.codes.scan_strategy == "naive"
    assert cfg.outputs.tables_format == "parquet"
    assert cfg.input.examples_source is None


def test_load_config_overrides_and_resolves_relative_examples_source(tmp_path: Path) -> None:
    config_data = {
        "stops": {"min_dwell": 2.5},
        "codes": {"scan_strategy": "cursor"},
        "input": {"examples_source": "data"},
        "outputs": {"tables_format": "csv"},
    }
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump(config_data), encoding="utf-8")

    cfg = load_config(config_path)

    assert cfg.stops.min_dwell == 2.5
    assert cfg.codes.scan_strategy == "cursor"
    assert cfg.outputs.tables_format == "csv"
    assert cfg.input.examples_source == str((tmp_path / "data").resolve())


def test_load_config_uses_env_examples_source(monkeypatch, tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("{}", encoding="utf-8")
    monkeypatch.setenv("IGS_EXAMPLES_SOURCE", "https://data.example/igs")

    cfg = load_config(config_path)

    assert cfg.input.examples_source == "https://data.example/igs"


def test_load_config_rejects_unknown_sections_and_bad_values(tmp_path: Path) -> None:
    unknown = tmp_path / "unknown.yaml"
    unknown.write_text(yaml.safe_dump({"render": {"fps": 30}}), encoding="utf-8")
    negative = tmp_path / "negative.yaml"
    negative.write_text(yaml.safe_dump({"stops": {"min_dwell": -1}}), encoding="utf-8")

    with pytest.raises(ValidationError):
        load_config(unknown)
    with pytest.raises(ValidationError):
        load_config(negative)
