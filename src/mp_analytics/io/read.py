from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from mp_analytics.config import AppConfig
from mp_analytics.errors import InputUnavailableError
from mp_analytics.io.records_postgres import load_case_records_from_postgres
from mp_analytics.io.schema import CANONICAL_COLUMNS, normalize_columns

LOGGER = logging.getLogger(__name__)


def _validate_required_columns(df: pd.DataFrame) -> pd.DataFrame:
    for column in CANONICAL_COLUMNS:
        if column not in df.columns:
            raise InputUnavailableError(f"Normalized data missing column: {column}")
    return df


def _load_from_postgres(config: AppConfig) -> pd.DataFrame:
    if not config.input.db_url:
        raise InputUnavailableError(
            "input.db_url must be set when input.mode is 'postgres'",
            source="postgres",
        )
    try:
        frame = load_case_records_from_postgres(
            db_url=config.input.db_url,
            table_name=config.input.records_table,
            require_reported_on=config.input.require_reported_on,
        )
    except Exception as exc:
        raise InputUnavailableError(
            f"Could not load records from table {config.input.records_table}: {exc}",
            source="postgres",
        ) from exc
    return frame


def _load_from_csv(csv_path: Path | None, config: AppConfig) -> pd.DataFrame:
    if csv_path is None:
        raise InputUnavailableError("csv_path is required when input.mode is 'csv'", source="csv")
    try:
        # Placeholder text such as "NA" or "N/A" is kept for the normalizers.
        df = pd.read_csv(csv_path, encoding="utf-8-sig", dtype=str, keep_default_na=False)
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise InputUnavailableError(
            f"Could not read records from {csv_path}: {exc}", source="csv"
        ) from exc

    df = df.replace({"": None})  # empty cells are missing values
    try:
        normalized = normalize_columns(df=df, columns=config.columns)
    except ValueError as exc:
        raise InputUnavailableError(str(exc), source="csv") from exc

    if config.input.require_reported_on:
        normalized = normalized.loc[normalized["reported_on"].notna()].reset_index(drop=True)
    return normalized


def load_records(csv_path: Path | None, config: AppConfig) -> pd.DataFrame:
    """Load case records from CSV or PostgreSQL and return canonical columns."""
    if config.input.mode == "postgres":
        frame = _load_from_postgres(config)
    else:
        frame = _load_from_csv(csv_path, config)
    LOGGER.info("Loaded %d records (mode=%s)", len(frame), config.input.mode)
    return _validate_required_columns(frame)

