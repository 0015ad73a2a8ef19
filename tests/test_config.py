from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from tz_inference.config import DEFAULT_CONFIG_PATH, AppConfig, load_config, load_config_or_default

REPO_ROOT = Path(__file__).resolve().parents[1]


def test_default_config_file_matches_model_defaults() -> None:
    cfg = load_config(REPO_ROOT / DEFAULT_CONFIG_PATH)

    assert cfg == AppConfig()
    assert cfg.input.timestamp_column == "created_at"
    assert cfg.detection.min_candidate_score == 10.0
    assert cfg.detection.sleep_reference_offset == 0


def test_load_config_overrides(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "input": {"timestamp_column": "time", "format": "jsonl"},
                "detection": {"min_candidate_score": 0},
                "outputs": {"tables_format": "parquet", "top_n": 3},
            }
        ),
        encoding="utf-8",
    )

    cfg = load_config(config_path)

    assert cfg.input.timestamp_column == "time"
    assert cfg.input.format == "jsonl"
    assert cfg.detection.min_candidate_score == 0.0
    assert cfg.outputs.tables_format == "parquet"
    assert cfg.outputs.top_n == 3
    assert cfg.logging.level == "INFO"


def test_unknown_sections_are_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("detectors:\n  enabled: true\n", encoding="utf-8")

    with pytest.raises(ValidationError):
        load_config(config_path)


def test_out_of_range_reference_offset_is_rejected() -> None:
    with pytest.raises(ValidationError):
        AppConfig.model_validate({"detection": {"sleep_reference_offset": 15}})


def test_missing_or_empty_config_falls_back_to_defaults(tmp_path: Path) -> None:
    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")

    assert load_config_or_default(None) == AppConfig()
    assert load_config_or_default(tmp_path / "missing.yaml") == AppConfig()
    assert load_config_or_default(empty) == AppConfig()
