from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from mp_analytics.config import AppConfig
from mp_analytics.errors import InputUnavailableError
from mp_analytics.io import read as read_module
from mp_analytics.io.read import load_records
from mp_analytics.io.schema import CANONICAL_COLUMNS, CaseRecord, records_to_frame


def _write_csv(path: Path) -> Path:
    path.write_text(
        "\n".join(
            [
                "case_id,reported_on,d_last_seen,d_located,sex,race,ncic_entered",
                "1,1/5/23 2:30 PM,2023-01-01,2023-01-02,F,White,Yes",
                "2,NA,2023-01-03,,M,N/A,",
            ]
        ),
        encoding="utf-8",
    )
    return path


def test_load_records_normalizes_source_columns(tmp_path: Path) -> None:
    loaded = load_records(csv_path=_write_csv(tmp_path / "records.csv"), config=AppConfig())

    assert list(loaded.columns) == CANONICAL_COLUMNS
    assert loaded.loc[0, "last_seen_date"] == "2023-01-01"
    assert loaded.loc[0, "located_date"] == "2023-01-02"
    assert loaded.loc[1, "reported_on"] == "NA"
    assert loaded.loc[1, "race"] == "N/A"
    assert pd.isna(loaded.loc[1, "located_date"])
    assert loaded["misstype"].isna().all()


def test_load_records_uses_configured_column_names(tmp_path: Path) -> None:
    csv_path = tmp_path / "records.csv"
    csv_path.write_text(
        "Reported On,Last Seen,Located\n01/05/2023,2023-01-01,\n",
        encoding="utf-8",
    )
    config = AppConfig.model_validate(
        {
            "columns": {
                "reported_on": "Reported On",
                "last_seen_date": "Last Seen",
                "located_date": "Located",
            }
        }
    )

    loaded = load_records(csv_path=csv_path, config=config)

    assert loaded.loc[0, "reported_on"] == "01/05/2023"
    assert loaded.loc[0, "last_seen_date"] == "2023-01-01"


def test_load_records_can_require_reported_on(tmp_path: Path) -> None:
    config = AppConfig.model_validate({"input": {"require_reported_on": True}})
    csv_path = tmp_path / "records.csv"
    csv_path.write_text("case_id,reported_on\n1,1/1/2023\n2,\n3,1/2/2023\n", encoding="utf-8")

    loaded = load_records(csv_path=csv_path, config=config)

    assert loaded["case_id"].tolist() == ["1", "3"]


def test_load_records_without_reported_on_column_is_unavailable(tmp_path: Path) -> None:
    csv_path = tmp_path / "records.csv"
    csv_path.write_text("case_id,sex\n1,F\n", encoding="utf-8")

    with pytest.raises(InputUnavailableError, match="reported_on") as excinfo:
        load_records(csv_path=csv_path, config=AppConfig())
    assert excinfo.value.retryable
    assert excinfo.value.source == "csv"


def test_missing_csv_file_is_unavailable(tmp_path: Path) -> None:
    with pytest.raises(InputUnavailableError):
        load_records(csv_path=tmp_path / "missing.csv", config=AppConfig())


def test_empty_csv_file_is_unavailable(tmp_path: Path) -> None:
    csv_path = tmp_path / "records.csv"
    csv_path.write_text("", encoding="utf-8")

    with pytest.raises(InputUnavailableError):
        load_records(csv_path=csv_path, config=AppConfig())


def test_postgres_mode_requires_db_url() -> None:
    config = AppConfig.model_validate({"input": {"mode": "postgres"}})
    config.input.db_url = None

    with pytest.raises(InputUnavailableError, match="db_url") as excinfo:
        load_records(csv_path=None, config=config)
    assert excinfo.value.source == "postgres"


def test_postgres_failures_become_input_unavailable(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail(**_kwargs: object) -> pd.DataFrame:
        raise ConnectionError("connection refused")

    monkeypatch.setattr(read_module, "load_case_records_from_postgres", _fail)
    config = AppConfig.model_validate(
        {"input": {"mode": "postgres", "db_url": "postgresql://localhost/cases"}}
    )

    with pytest.raises(InputUnavailableError, match="connection refused"):
        load_records(csv_path=None, config=config)


def test_postgres_mode_passes_input_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def _fake_loader(**kwargs: object) -> pd.DataFrame:
        captured.update(kwargs)
        return pd.DataFrame(columns=CANONICAL_COLUMNS)

    monkeypatch.setattr(read_module, "load_case_records_from_postgres", _fake_loader)
    config = AppConfig.model_validate(
        {
            "input": {
                "mode": "postgres",
                "db_url": "postgresql://localhost/cases",
                "records_table": "cases_v2",
                "require_reported_on": True,
            }
        }
    )

    loaded = load_records(csv_path=None, config=config)

    assert loaded.empty
    assert captured == {
        "db_url": "postgresql://localhost/cases",
        "table_name": "cases_v2",
        "require_reported_on": True,
    }


def test_postgres_frame_missing_columns_is_unavailable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        read_module,
        "load_case_records_from_postgres",
        lambda **_kwargs: pd.DataFrame({"case_id": ["1"]}),
    )
    config = AppConfig.model_validate(
        {"input": {"mode": "postgres", "db_url": "postgresql://localhost/cases"}}
    )

    with pytest.raises(InputUnavailableError, match="missing column"):
        load_records(csv_path=None, config=config)


def test_records_to_frame_accepts_records_and_mappings() -> None:
    frame = records_to_frame(
        [
            CaseRecord(case_id="1", sex="F"),
            {"case_id": "2", "reported_on": "1/1/2023", "extra": "ignored"},
        ]
    )

    assert list(frame.columns) == CANONICAL_COLUMNS
    assert frame["case_id"].tolist() == ["1", "2"]
    assert frame.loc[1, "sex"] is None
    assert frame.loc[0, "reported_on"] is None


def test_records_to_frame_rejects_unsupported_records() -> None:
    with pytest.raises(TypeError, match="Unsupported record type"):
        records_to_frame([("1", "1/1/2023")])
