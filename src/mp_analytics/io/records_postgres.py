from __future__ import annotations

import pandas as pd

from mp_analytics.io.schema import CANONICAL_COLUMNS


def _load_psycopg():
    try:
        import psycopg
        from psycopg import sql
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError(
            "psycopg is required for PostgreSQL operations. "
            "Install with: pip install 'psycopg[binary]'"
        ) from exc
    return psycopg, sql


def _build_records_query(sql, table_name: str, id_column: str, require_reported_on: bool):
    where_sql = sql.SQL("")
    if require_reported_on:
        where_sql = sql.SQL(" WHERE reported_on IS NOT NULL")

    return sql.SQL(
        """
        SELECT
          {id_column}::TEXT AS case_id,
          reported_on::TEXT AS reported_on,
          d_last_seen AS last_seen_date,
          d_located AS located_date,
          sex,
          misstype,
          race,
          ethnicity,
          ncic_entered,
          ncic_cleared,
          acic_entered,
          acic_cleared
        FROM {table_name}
        {where_sql}
        ORDER BY 1
        """
    ).format(
        id_column=sql.Identifier(id_column),
        table_name=sql.Identifier(table_name),
        where_sql=where_sql,
    )


def load_case_records_from_postgres(
    db_url: str,
    table_name: str = "missing_persons_parsed",
    require_reported_on: bool = False,
    id_column: str = "id",
) -> pd.DataFrame:
    """Fetch a consistent snapshot of case records in canonical column order.

    Dates come back as ``datetime.date`` values and SQL NULLs as ``None``.
    """
    psycopg, sql = _load_psycopg()
    query = _build_records_query(sql, table_name, id_column, require_reported_on)
    with psycopg.connect(db_url) as conn:
        with conn.cursor() as cursor:
            cursor.execute(query)
            rows = cursor.fetchall()

    if not rows:
        return pd.DataFrame(columns=CANONICAL_COLUMNS)
    return pd.DataFrame(rows, columns=CANONICAL_COLUMNS)
