from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pandas as pd


def write_view(rows: list[dict[str, Any]], path: Path, fmt: str = "json") -> Path:
    """Write one view's rows; JSON keeps nulls and column order exactly as computed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if fmt == "json":
        path.write_text(json.dumps(rows, indent=2), encoding="utf-8")
        return path

    frame = pd.DataFrame.from_records(rows)
    if fmt == "parquet":
        frame.to_parquet(path, index=False)
        return path
    if fmt == "csv":
        frame.to_csv(path, index=False)
        return path
    raise ValueError(f"Unsupported table format: {fmt}")


def write_summary(data: dict[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
    return path
