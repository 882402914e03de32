from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields, is_dataclass
from datetime import date
from typing import Any, Iterable, Mapping, Union

import pandas as pd

from mp_analytics.config import ColumnsConfig

LOGGER = logging.getLogger(__name__)

DateLike = Union[date, str, None]


@dataclass(frozen=True)
class CaseRecord:
    case_id: str | None = None
    reported_on: str | None = None
    last_seen_date: DateLike = None
    located_date: DateLike = None
    sex: str | None = None
    misstype: str | None = None
    race: str | None = None
    ethnicity: str | None = None
    ncic_entered: str | None = None
    ncic_cleared: str | None = None
    acic_entered: str | None = None
    acic_cleared: str | None = None


CANONICAL_COLUMNS = [field.name for field in fields(CaseRecord)]
STATUS_FLAG_COLUMNS = ["ncic_entered", "ncic_cleared", "acic_entered", "acic_cleared"]


def normalize_columns(df: pd.DataFrame, columns: ColumnsConfig) -> pd.DataFrame:
    """Rename source columns to canonical record field names.

    Only ``reported_on`` is required; any other canonical field that the source
    does not carry is added as an all-missing column.
    """
    rename_map = {getattr(columns, name): name for name in CANONICAL_COLUMNS}
    if columns.reported_on not in df.columns:
        raise ValueError(f"Missing required columns in source: {columns.reported_on}")

    renamed = df.rename(columns=rename_map)
    for name in CANONICAL_COLUMNS:
        if name not in renamed.columns:
            renamed[name] = None
    return renamed[CANONICAL_COLUMNS]


def _record_to_mapping(record: Any) -> Mapping[str, Any]:
    if isinstance(record, CaseRecord) or is_dataclass(record):
        return asdict(record)
    if isinstance(record, Mapping):
        return record
    raise TypeError(f"Unsupported record type: {type(record).__name__}")


def records_to_frame(
    records: pd.DataFrame | Iterable[Any],
    columns: ColumnsConfig | None = None,
) -> pd.DataFrame:
    """Build a canonical record frame; the caller's data is never modified.

    Columns still carrying their configured source names (``d_last_seen``,
    ``d_located``) are renamed when the canonical column is absent.
    """
    if isinstance(records, pd.DataFrame):
        working = records.copy()
    else:
        rows = [_record_to_mapping(record) for record in records]
        working = pd.DataFrame.from_records(rows) if rows else pd.DataFrame()

    columns = columns or ColumnsConfig()
    rename_map = {
        getattr(columns, name): name
        for name in CANONICAL_COLUMNS
        if name not in working.columns and getattr(columns, name) in working.columns
    }
    if rename_map:
        working = working.rename(columns=rename_map)

    missing = [name for name in CANONICAL_COLUMNS if name not in working.columns]
    if missing and len(working):
        LOGGER.warning("Records lack columns %s; treating them as missing", ", ".join(missing))
    for name in missing:
        working[name] = None
    working = working[CANONICAL_COLUMNS].astype(object)
    return working.where(pd.notna(working), None).reset_index(drop=True)
