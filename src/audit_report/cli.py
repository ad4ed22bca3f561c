"""CLI entry point for audit-report."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from audit_report import __version__
from audit_report.batch import render_batch
from audit_report.config import RenderSettings, load_settings
from audit_report.engine import generate_report
from audit_report.errors import ReportError
from audit_report.render.finalize import FileSink


def _settings_options(fn):
    """Options shared by every command that renders."""
    options = [
        click.option(
            "-o", "--output-dir",
            type=click.Path(file_okay=False, path_type=Path),
            default=Path("."),
            show_default=True,
            help="Directory the PDF files are written to.",
        ),
        click.option("--org-name", default=None, help="Organisation name on the cover and footer."),
        click.option("--org-tag", default=None, help="Organisation tag used in file names."),
        click.option("--logo-base", default=None, help="Directory or URL prefix holding {slug}.{ext} logos."),
        click.option("--timeout", type=float, default=None, help="Per-document render timeout in seconds."),
        click.option(
            "--date", "day",
            type=click.DateTime(formats=["%Y-%m-%d"]),
            default=None,
            help="Report date (default: today).",
        ),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


@click.group()
@click.option(
    "-c", "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML settings file.",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose logging.")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """Render smart-contract audit records as paginated PDF reports."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )
    ctx.obj = config


def _build_settings(config: Path | None, **overrides) -> RenderSettings:
    try:
        return load_settings(config, **overrides)
    except (ValueError, OSError) as exc:
        raise click.ClickException(f"Invalid settings: {exc}") from exc


def _read_json(path: Path):
    try:
        return json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise click.ClickException(f"Cannot read {path}: {exc}") from exc


def _collect_records(source: Path) -> list:
    """Records from a JSON file (object or list) or a directory of JSON files."""
    files = sorted(source.glob("*.json")) if source.is_dir() else [source]
    records: list = []
    for path in files:
        data = _read_json(path)
        if isinstance(data, list):
            records.extend(data)
        else:
            records.append(data)
    return records


@main.command()
@click.argument("record_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_settings_options
@click.pass_obj
def render(
    config: Path | None,
    record_file: Path,
    output_dir: Path,
    org_name: str | None,
    org_tag: str | None,
    logo_base: str | None,
    timeout: float | None,
    day,
) -> None:
    """Render a single audit record (JSON object) to PDF."""
    settings = _build_settings(
        config, org_name=org_name, org_tag=org_tag, logo_base=logo_base, render_timeout=timeout,
    )
    data = _read_json(record_file)
    if not isinstance(data, dict):
        raise click.UsageError(f"{record_file} does not hold a single record; use 'batch' for lists.")

    try:
        result = generate_report(
            data,
            settings=settings,
            sink=FileSink(output_dir),
            today=day.date() if day else None,
        )
    except (ReportError, ValidationError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"PDF report written to {result.path} ({result.page_count} pages)")


@main.command()
@click.argument("source", type=click.Path(exists=True, path_type=Path))
@_settings_options
@click.option("-j", "--workers", type=int, default=None, help="Concurrent renders (default from settings).")
@click.pass_obj
def batch(
    config: Path | None,
    source: Path,
    output_dir: Path,
    org_name: str | None,
    org_tag: str | None,
    logo_base: str | None,
    timeout: float | None,
    day,
    workers: int | None,
) -> None:
    """Render every record in SOURCE (JSON list, object, or directory of JSON files)."""
    settings = _build_settings(
        config, org_name=org_name, org_tag=org_tag, logo_base=logo_base, render_timeout=timeout,
    )
    records = _collect_records(source)
    if not records:
        click.echo("No records found.")
        return

    outcomes = render_batch(
        records,
        settings=settings,
        out_dir=output_dir,
        max_workers=workers,
        today=day.date() if day else None,
    )
    for outcome in outcomes:
        if outcome.ok:
            click.echo(f"ok    {outcome.slug} -> {outcome.result.path}")
        else:
            click.echo(f"FAIL  {outcome.slug}: {outcome.error}", err=True)

    failed = sum(1 for o in outcomes if not o.ok)
    click.echo(f"{len(outcomes) - failed} rendered, {failed} failed")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
