"""Footer pass, output file naming and sinks."""

from __future__ import annotations

import logging
import os
import re
import tempfile
from datetime import date
from pathlib import Path
from typing import Protocol

from audit_report.render._helpers import DIVIDER, FAINT, WHITE, long_date
from audit_report.render.context import RenderContext
from audit_report.render.layout import CONTENT_W, MARGIN_X, PAGE_H, PAGE_W, PageManager

log = logging.getLogger(__name__)

_FOOTER_RULE_Y = PAGE_H - 15
_FOOTER_TEXT_Y = PAGE_H - 13

_UNSAFE_NAME = re.compile(r"[^A-Za-z0-9._-]+")


def footer_text(ctx: RenderContext) -> str:
    return f"Generated by {ctx.settings.org_name} Audit Portal - {long_date(ctx.generated)}"


def stamp_footers(pm: PageManager, ctx: RenderContext) -> dict[int, str]:
    """Stamp the footer on every page except the cover.

    Runs once all sections are laid out so the total page count is known.
    Returns {page number: "Page X of Y"} for each stamped page.
    """
    pdf = pm.pdf
    total = pdf.page
    text = pm.safe(footer_text(ctx))
    stamped: dict[int, str] = {}

    for n in range(2, total + 1):
        pdf.page = n
        # The font selected on the last page is not active on a revisited
        # page; clearing the family makes set_font select it again here.
        pdf.font_family = ""
        pm.font("", 7.5)
        pdf.set_draw_color(*DIVIDER)
        pdf.set_line_width(0.2)
        pdf.line(MARGIN_X, _FOOTER_RULE_Y, PAGE_W - MARGIN_X, _FOOTER_RULE_Y)
        # cells only emit the text colour when it differs from the fill colour
        pdf.set_fill_color(*WHITE)
        pdf.set_text_color(*FAINT)
        pdf.set_xy(MARGIN_X, _FOOTER_TEXT_Y)
        pdf.cell(CONTENT_W, 5, text, align="C")
        label = f"Page {n} of {total}"
        pdf.set_xy(MARGIN_X, _FOOTER_TEXT_Y)
        pdf.cell(CONTENT_W, 5, label, align="R")
        stamped[n] = label

    pdf.page = total
    log.debug("Stamped footers on %d page(s)", len(stamped))
    return stamped


def report_filename(slug: str, org_tag: str, day: date) -> str:
    """{YYYYMMDD}_{ORG}_{slug}_Audit.pdf with path-unsafe characters replaced."""
    safe_slug = _UNSAFE_NAME.sub("-", slug).strip("-") or "report"
    safe_tag = _UNSAFE_NAME.sub("-", org_tag).strip("-") or "AUDIT"
    return f"{day:%Y%m%d}_{safe_tag}_{safe_slug}_Audit.pdf"


# ── Sinks ───────────────────────────────────────────────────────────────────


class Sink(Protocol):
    def emit(self, data: bytes, filename: str) -> Path | None: ...


class BufferSink:
    """Keeps the finished document in memory."""

    def __init__(self):
        self.data: bytes | None = None
        self.filename: str | None = None

    def emit(self, data: bytes, filename: str) -> None:
        self.data = data
        self.filename = filename


class FileSink:
    """Writes the document into a directory; the file appears complete or not at all."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def emit(self, data: bytes, filename: str) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / filename
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{filename}.", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, target)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        log.info("Wrote %s (%d bytes)", target, len(data))
        return target
