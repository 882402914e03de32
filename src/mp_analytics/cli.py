from __future__ import annotations

import json
from pathlib import Path

import typer

from mp_analytics.config import DEFAULT_CONFIG_PATH, AppConfig, default_config, load_config
from mp_analytics.errors import InputUnavailableError
from mp_analytics.io.read import load_records
from mp_analytics.logging import configure_logging
from mp_analytics.pipeline.run_all import run_views
from mp_analytics.pipeline.views import available_views, compute_views

app = typer.Typer(no_args_is_help=True, add_completion=False)

INPUT_UNAVAILABLE_EXIT_CODE = 2
TABLE_FORMATS = ("json", "csv", "parquet")


def _load_app_config(config_path: Path | None) -> AppConfig:
    if config_path is None:
        if DEFAULT_CONFIG_PATH.exists():
            return load_config(DEFAULT_CONFIG_PATH)
        return default_config()
    return load_config(config_path)


def _apply_input_overrides(
    cfg: AppConfig,
    db_url: str | None,
    require_reported_on: bool | None,
) -> None:
    if db_url:
        cfg.input.mode = "postgres"
        cfg.input.db_url = db_url
    if require_reported_on is not None:
        cfg.input.require_reported_on = require_reported_on


def _require_csv_for_csv_mode(csv: Path | None, cfg: AppConfig) -> Path | None:
    if cfg.input.mode == "csv" and csv is None:
        raise typer.BadParameter(
            "Missing --csv. Required when input.mode='csv'. "
            "Set input.mode='postgres' and configure input.db_url to read from PostgreSQL."
        )
    return csv


def _check_view_names(views: list[str] | None) -> list[str] | None:
    if not views:
        return None
    unknown = sorted(set(views) - set(available_views()))
    if unknown:
        raise typer.BadParameter(
            f"Unknown view(s): {', '.join(unknown)}. Run `mp-analytics views` to list them."
        )
    return views


def _configure_logging(log_level: str) -> None:
    try:
        configure_logging(log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--log-level") from exc


def _input_unavailable(exc: InputUnavailableError) -> typer.Exit:
    typer.echo(f"Input unavailable (retryable): {exc}", err=True)
    return typer.Exit(code=INPUT_UNAVAILABLE_EXIT_CODE)


@app.command("views")
def list_views() -> None:
    """List the names of the available analytical views."""
    for name in available_views():
        typer.echo(name)


@app.command()
def show(
    view: str = typer.Argument(..., help="View name, see `mp-analytics views`."),
    csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    config: Path | None = typer.Option(
        None, exists=True, readable=True, resolve_path=True, help="YAML config file."
    ),
    db_url: str | None = typer.Option(
        None,
        envvar=["MP_ANALYTICS_DB_URL"],
        help="PostgreSQL connection string; switches input to PostgreSQL.",
    ),
    log_level: str = typer.Option("WARNING"),
) -> None:
    """Compute one view and print it as JSON."""
    _configure_logging(log_level)
    _check_view_names([view])
    cfg = _load_app_config(config)
    _apply_input_overrides(cfg, db_url=db_url, require_reported_on=None)
    csv = _require_csv_for_csv_mode(csv=csv, cfg=cfg)
    try:
        records = load_records(csv_path=csv, config=cfg)
    except InputUnavailableError as exc:
        raise _input_unavailable(exc) from exc

    result = compute_views(records, names=[view], config=cfg)[view]
    if not result.ok:
        typer.echo(f"View {view} failed: {result.error}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(result.rows, indent=2))


@app.command()
def run(
    csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path | None = typer.Option(
        None, exists=True, readable=True, resolve_path=True, help="YAML config file."
    ),
    view: list[str] | None = typer.Option(
        None, "--view", help="Restrict to these views; repeatable. Defaults to all views."
    ),
    db_url: str | None = typer.Option(
        None,
        envvar=["MP_ANALYTICS_DB_URL"],
        help="PostgreSQL connection string; switches input to PostgreSQL.",
    ),
    require_reported_on: bool = typer.Option(
        False, help="Only load records that carry a reported_on value."
    ),
    tables_format: str | None = typer.Option(None, help="json, csv or parquet."),
    figures: bool = typer.Option(True, help="Render PNG figures for the trend views."),
    log_level: str = typer.Option("INFO"),
) -> None:
    """Compute views and write tables, figures and a run summary to --out."""
    _configure_logging(log_level)
    views = _check_view_names(view)
    cfg = _load_app_config(config)
    _apply_input_overrides(cfg, db_url=db_url, require_reported_on=require_reported_on or None)
    if tables_format is not None:
        if tables_format not in TABLE_FORMATS:
            raise typer.BadParameter(f"Unsupported --tables-format: {tables_format}")
        cfg.outputs.tables_format = tables_format
    cfg.outputs.render_figures = cfg.outputs.render_figures and figures
    csv = _require_csv_for_csv_mode(csv=csv, cfg=cfg)

    try:
        records = load_records(csv_path=csv, config=cfg)
    except InputUnavailableError as exc:
        raise _input_unavailable(exc) from exc

    summary = run_views(records, out_dir=out, config=cfg, views=views)
    typer.echo(f"Run complete. Views: {len(summary['views_written'])}")
    for name, path in sorted(summary["views_written"].items()):
        typer.echo(f"- {name}: {path}")
    if summary["views_failed"]:
        for name, error in sorted(summary["views_failed"].items()):
            typer.echo(f"- {name} FAILED: {error}", err=True)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
