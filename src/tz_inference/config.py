from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field


class InputConfig(BaseModel):
    timestamp_column: str = "created_at"
    format: Literal["auto", "csv", "jsonl"] = "auto"


class DetectionConfig(BaseModel):
    night_start_local: float = Field(default=21.0, ge=0.0, lt=24.0)
    sleep_reference_offset: int = Field(default=0, ge=-12, le=14)
    min_candidate_score: float = Field(default=10.0, ge=0.0)


class OutputsConfig(BaseModel):
    tables_format: Literal["csv", "parquet"] = "csv"
    top_n: int = Field(default=5, ge=1)


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    input: InputConfig = Field(default_factory=InputConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return AppConfig.model_validate(data)


def load_config_or_default(path: Path | None) -> AppConfig:
    if path is None or not path.exists():
        return AppConfig()
    return load_config(path)
