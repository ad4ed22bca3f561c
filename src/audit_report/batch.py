"""Render many records on a bounded worker pool sharing one asset cache."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from pydantic import ValidationError

from audit_report.assets import AssetCache, AssetLoader
from audit_report.config import RenderSettings
from audit_report.engine import RenderResult, generate_report
from audit_report.errors import ReportError
from audit_report.models import AuditRecord
from audit_report.render.finalize import FileSink

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchOutcome:
    """Per-record result of a batch: exactly one of ``result`` / ``error`` is set."""
    slug: str
    result: RenderResult | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _slug_of(record: AuditRecord | Mapping) -> str:
    if isinstance(record, AuditRecord):
        return record.slug
    if isinstance(record, Mapping):
        return str(record.get("slug") or "?")
    return "?"


def render_batch(
    records: Iterable[AuditRecord | Mapping],
    *,
    settings: RenderSettings | None = None,
    cache: AssetCache | None = None,
    out_dir: Path | None = None,
    max_workers: int | None = None,
    today: date | None = None,
) -> list[BatchOutcome]:
    """Render every record; failures become outcomes instead of stopping the batch.

    Outcomes are returned in input order. With ``out_dir`` each document is
    written there through a FileSink; otherwise the bytes stay on the results.
    """
    settings = settings or RenderSettings()
    if cache is None:
        cache = AssetCache(AssetLoader(timeout=settings.fetch_timeout))
    sink = FileSink(out_dir) if out_dir is not None else None
    workers = max_workers or settings.batch_workers

    def render_one(record: AuditRecord | Mapping) -> BatchOutcome:
        slug = _slug_of(record)
        try:
            result = generate_report(record, settings=settings, cache=cache, sink=sink, today=today)
        except (ReportError, ValidationError) as exc:
            log.warning("Report %s failed: %s", slug, exc)
            return BatchOutcome(slug=slug, error=exc)
        except Exception as exc:
            log.exception("Report %s failed unexpectedly", slug)
            return BatchOutcome(slug=slug, error=exc)
        return BatchOutcome(slug=slug, result=result)

    items = list(records)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="audit-render") as pool:
        outcomes = list(pool.map(render_one, items))

    failed = sum(1 for o in outcomes if not o.ok)
    log.info("Batch finished: %d rendered, %d failed", len(outcomes) - failed, failed)
    return outcomes
