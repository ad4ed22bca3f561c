"""One-document entry point: record in, finished PDF out."""

from __future__ import annotations

import logging
import tempfile
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path

from fpdf import FPDF

from audit_report import __version__
from audit_report.assets import AssetCache, AssetLoader, AssetResolver, prefetch
from audit_report.config import RenderSettings
from audit_report.errors import RenderFailed, ReportError
from audit_report.models import AuditRecord
from audit_report.render.context import RenderContext
from audit_report.render.finalize import Sink, report_filename, stamp_footers
from audit_report.render.layout import CORE_FAMILY, CUSTOM_FAMILY, Outline, PageManager
from audit_report.render.sections import RENDERERS

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderResult:
    """A finished document and what was laid out in it."""
    data: bytes
    page_count: int
    outline: Outline
    filename: str
    path: Path | None = None      # set when a FileSink wrote the document
    footers: dict[int, str] = field(default_factory=dict)


def generate_report(
    record: AuditRecord | Mapping,
    *,
    settings: RenderSettings | None = None,
    cache: AssetCache | None = None,
    sink: Sink | None = None,
    deadline: float | None = None,
    today: date | None = None,
) -> RenderResult:
    """Render one audit record to PDF.

    Args:
        record: The audit record, or a mapping accepted by AuditRecord.model_validate.
        settings: Branding, asset and timing settings. Defaults to RenderSettings().
        cache: Shared asset cache. A fresh one is created when omitted.
        sink: Where the finished bytes go (FileSink, BufferSink). None keeps
              them on the result only.
        deadline: time.monotonic() value after which the render is abandoned.
                  Defaults to now + settings.render_timeout.
        today: Date printed on the cover, the footer and in the filename.

    Returns:
        RenderResult with the PDF bytes, page count and layout outline.

    Raises:
        pydantic.ValidationError: the record mapping is malformed.
        DeadlineExceeded: the deadline passed; nothing was emitted.
        LayoutError: cursor arithmetic left the printable band.
        RenderFailed: the document could not be built or written.
    """
    settings = settings or RenderSettings()
    if not isinstance(record, AuditRecord):
        record = AuditRecord.model_validate(record)
    if cache is None:
        cache = AssetCache(AssetLoader(timeout=settings.fetch_timeout))
    if deadline is None and settings.render_timeout is not None:
        deadline = time.monotonic() + settings.render_timeout
    today = today or date.today()

    started = time.monotonic()
    resolver = AssetResolver(settings)
    prefetch(cache, resolver.keys_for(record), max_workers=settings.prefetch_workers, deadline=deadline)
    ctx = RenderContext(record=record, settings=settings, cache=cache, resolver=resolver, generated=today)

    try:
        # TTF files must stay on disk until output() embeds them
        with tempfile.TemporaryDirectory(prefix="audit-fonts-") as font_dir:
            pdf = FPDF(orientation="portrait", unit="mm", format="A4")
            family = _register_fonts(pdf, ctx, Path(font_dir))
            pm = PageManager(pdf, deadline=deadline, font_family=family)
            pm.new_page()
            for renderer in RENDERERS:
                pm = renderer(pm, ctx)

            pm.check_deadline()
            footers = stamp_footers(pm, ctx)
            data = _finish(pdf, ctx)
    except ReportError:
        raise
    except Exception as exc:
        raise RenderFailed(f"{record.slug}: {exc}") from exc

    filename = report_filename(record.slug, settings.org_tag, today)
    path = None
    if sink is not None:
        try:
            path = sink.emit(data, filename)
        except OSError as exc:
            raise RenderFailed(f"{record.slug}: could not write {filename}: {exc}") from exc

    log.info("Rendered %s: %d page(s), %d bytes in %.2fs",
             record.slug, pm.page, len(data), time.monotonic() - started)
    return RenderResult(
        data=data,
        page_count=pm.page,
        outline=pm.outline,
        filename=filename,
        path=path,
        footers=footers,
    )


def _register_fonts(pdf: FPDF, ctx: RenderContext, font_dir: Path) -> str:
    """Register the configured TTF family; fall back to core Helvetica."""
    keys = ctx.resolver.font_keys()
    if "" not in keys:
        return CORE_FAMILY
    regular = ctx.cache.get(keys[""], timeout=0)
    if not regular:
        log.warning("Regular font %s unavailable, using %s", keys[""], CORE_FAMILY)
        return CORE_FAMILY
    bold = ctx.cache.get(keys["B"], timeout=0) if "B" in keys else None

    try:
        for style, data in (("", regular), ("B", bold or regular)):
            path = font_dir / f"font-{style or 'R'}.ttf"
            path.write_bytes(data)
            pdf.add_font(CUSTOM_FAMILY, style, str(path))
    except Exception as exc:
        log.warning("Could not register font %s (%s), using %s", keys[""], exc, CORE_FAMILY)
        return CORE_FAMILY
    return CUSTOM_FAMILY


def _finish(pdf: FPDF, ctx: RenderContext) -> bytes:
    r = ctx.record
    pdf.set_title(f"{r.name} Smart Contract Audit")
    pdf.set_subject(f"Security audit report for {r.name}")
    pdf.set_author(ctx.settings.org_name)
    pdf.set_creator(f"audit-report {__version__}")
    # pinned to the render date so identical inputs give identical bytes
    d = ctx.generated
    pdf.set_creation_date(datetime(d.year, d.month, d.day, tzinfo=timezone.utc))
    return bytes(pdf.output())
