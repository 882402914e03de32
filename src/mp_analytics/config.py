from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

DB_URL_ENV_VARS = ("MP_ANALYTICS_DB_URL", "DATABASE_URL")


class ColumnsConfig(BaseModel):
    """Source column names for each canonical record field."""

    case_id: str = "case_id"
    reported_on: str = "reported_on"
    last_seen_date: str = "d_last_seen"
    located_date: str = "d_located"
    sex: str = "sex"
    misstype: str = "misstype"
    race: str = "race"
    ethnicity: str = "ethnicity"
    ncic_entered: str = "ncic_entered"
    ncic_cleared: str = "ncic_cleared"
    acic_entered: str = "acic_entered"
    acic_cleared: str = "acic_cleared"


class TimeConfig(BaseModel):
    # Two-digit years below the pivot land in the 2000s, the rest in the 1900s.
    two_digit_year_pivot: int = Field(default=50, ge=0, le=100)


class WindowsConfig(BaseModel):
    short_months: int = Field(default=6, ge=1)
    long_months: int = Field(default=12, ge=1)
    anomaly_months: int = Field(default=12, ge=1)


class InputConfig(BaseModel):
    mode: Literal["csv", "postgres"] = "csv"
    db_url: str | None = None
    records_table: str = "missing_persons_parsed"
    require_reported_on: bool = False


class OutputsConfig(BaseModel):
    tables_format: Literal["json", "csv", "parquet"] = "json"
    figures_format: str = "png"
    render_figures: bool = True


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    time: TimeConfig = Field(default_factory=TimeConfig)
    windows: WindowsConfig = Field(default_factory=WindowsConfig)
    input: InputConfig = Field(default_factory=InputConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def _env_db_url() -> str | None:
    for name in DB_URL_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value
    return None


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    config = AppConfig.model_validate(data)
    config.input.db_url = config.input.db_url or _env_db_url()
    return config


def default_config() -> AppConfig:
    config = AppConfig()
    config.input.db_url = _env_db_url()
    return config
