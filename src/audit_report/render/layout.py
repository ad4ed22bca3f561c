"""Layout cursor and page manager.

All section and table renderers draw through a PageManager. It owns the only
vertical cursor, starts new pages when a draw would cross the bottom margin
and records an outline of what was drawn where (sections, headings, breaks).
"""

from __future__ import annotations

import io
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field

from fpdf import FPDF
from fpdf.enums import MethodReturnValue

from audit_report.errors import DeadlineExceeded, LayoutError
from audit_report.render._helpers import RGB, latin1

log = logging.getLogger(__name__)

# A4 portrait, millimetres
PAGE_W = 210.0
PAGE_H = 297.0
MARGIN_X = 15.0
TOP_MARGIN = 20.0
BOTTOM_MARGIN = 20.0
CONTENT_W = PAGE_W - 2 * MARGIN_X  # 180

# Float slack for cursor comparisons.
_EPS = 1e-6

CORE_FAMILY = "Helvetica"
CUSTOM_FAMILY = "AuditSans"


@dataclass(frozen=True)
class Cursor:
    page: int
    y: float


@dataclass(frozen=True)
class SectionMark:
    name: str
    start: Cursor
    end: Cursor


@dataclass(frozen=True)
class OutlineEvent:
    kind: str       # "heading", "bucket", "finding", "row", "break", "image", "block"
    label: str
    at: Cursor


@dataclass
class Outline:
    """What the render drew, in order. Used by callers and tests to inspect layout."""
    sections: list[SectionMark] = field(default_factory=list)
    events: list[OutlineEvent] = field(default_factory=list)

    def section_names(self) -> list[str]:
        return [s.name for s in self.sections]

    def labels(self, kind: str) -> list[str]:
        return [e.label for e in self.events if e.kind == kind]

    def section(self, name: str) -> SectionMark | None:
        for s in self.sections:
            if s.name == name:
                return s
        return None


class PageManager:
    """Owns the FPDF document and the layout cursor for one render."""

    def __init__(
        self,
        pdf: FPDF | None = None,
        *,
        page_height: float = PAGE_H,
        top_margin: float = TOP_MARGIN,
        bottom_margin: float = BOTTOM_MARGIN,
        deadline: float | None = None,
        font_family: str = CORE_FAMILY,
    ):
        if top_margin + bottom_margin >= page_height:
            raise LayoutError("margins leave no printable height")
        self._pdf = pdf or FPDF(orientation="portrait", unit="mm", format="A4")
        self._pdf.set_auto_page_break(auto=False)
        self._pdf.set_margins(MARGIN_X, top_margin, MARGIN_X)
        self.page_height = page_height
        self.top = top_margin
        self.bottom = page_height - bottom_margin
        self.deadline = deadline
        self.family = font_family
        self.outline = Outline()
        self._y = top_margin
        self._draws = 0

    # ── State ─────────────────────────────────────────────────────────

    @property
    def pdf(self) -> FPDF:
        return self._pdf

    @property
    def y(self) -> float:
        return self._y

    @property
    def page(self) -> int:
        return self._pdf.page

    @property
    def cursor(self) -> Cursor:
        return Cursor(self.page, self._y)

    @property
    def remaining(self) -> float:
        return self.bottom - self._y

    @property
    def usable_height(self) -> float:
        return self.bottom - self.top

    @property
    def core_font(self) -> bool:
        return self.family == CORE_FAMILY

    def check(self) -> None:
        """Fail fast when the cursor left the printable band."""
        if self.page < 1:
            raise LayoutError("no page open")
        if not (self.top - _EPS <= self._y <= self.bottom + _EPS):
            raise LayoutError(
                f"cursor y={self._y:.2f} outside [{self.top:.2f}, {self.bottom:.2f}] on page {self.page}"
            )

    def check_deadline(self) -> None:
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise DeadlineExceeded(f"render deadline passed on page {self.page}")

    # ── Cursor movement ───────────────────────────────────────────────

    def new_page(self) -> Cursor:
        """Explicit page break; cursor resets to the top margin."""
        if self.page >= 1:
            self.outline.events.append(OutlineEvent("break", "", self.cursor))
        self._pdf.add_page()
        self._y = self.top
        return self.cursor

    def advance(self, dy: float) -> Cursor:
        """Move the cursor down; clamps to the bottom margin at most."""
        if dy < 0:
            raise LayoutError(f"cannot advance by negative dy={dy}")
        self._y = min(self._y + dy, self.bottom)
        return self.cursor

    def ensure_space(self, required: float) -> Cursor:
        """Start a new page when ``required`` mm no longer fit above the bottom margin."""
        if required < 0:
            raise LayoutError(f"negative space request {required}")
        if self._y + required > self.bottom + _EPS:
            self.new_page()
        return self.cursor

    def place(self, y: float) -> Cursor:
        """Absolute positioning for fixed-content pages (cover)."""
        self._y = y
        self.check()
        return self.cursor

    # ── Outline ───────────────────────────────────────────────────────

    def mark(self, kind: str, label: str) -> None:
        self.outline.events.append(OutlineEvent(kind, label, self.cursor))

    @contextmanager
    def section(self, name: str):
        """Record a section in the outline if anything was drawn inside it."""
        self.check_deadline()
        start = self.cursor
        draws = self._draws
        yield self
        if self._draws != draws:
            self.outline.sections.append(SectionMark(name, start, self.cursor))
        else:
            log.debug("Section %s skipped (no qualifying data)", name)

    # ── Styling ───────────────────────────────────────────────────────

    def font(self, style: str = "", size: float = 9) -> None:
        # Custom TTF families only ship regular/bold.
        if not self.core_font:
            style = "B" if "B" in style else ""
        self._pdf.set_font(self.family, style, size)

    def color(self, rgb: RGB) -> None:
        self._pdf.set_text_color(*rgb)

    def safe(self, text: object) -> str:
        return latin1(text) if self.core_font else str(text)

    def string_width(self, text: str) -> float:
        return self._pdf.get_string_width(self.safe(text))

    # ── Drawing primitives (all guarded) ──────────────────────────────

    def _guard(self, height: float, dy: float = 0.0) -> None:
        self.check()
        if self._y + dy + height > self.bottom + _EPS:
            raise LayoutError(
                f"draw of {height:.2f}mm at y={self._y + dy:.2f} crosses bottom margin {self.bottom:.2f} "
                f"on page {self.page}; call ensure_space first"
            )
        self._draws += 1

    def text(
        self,
        text: object,
        *,
        h: float,
        x: float = MARGIN_X,
        w: float = 0,
        align: str = "L",
        fill: RGB | None = None,
        dy: float = 0,
        advance: bool = True,
    ) -> None:
        """Single-line cell at cursor + dy; w=0 extends to the right margin."""
        self._guard(h, dy)
        if fill is not None:
            self._pdf.set_fill_color(*fill)
        self._pdf.set_xy(x, self._y + dy)
        self._pdf.cell(w, h, self.safe(text), align=align, fill=fill is not None)
        if advance:
            self._y += dy + h

    def rect(self, x: float, w: float, h: float, color: RGB, *, dy: float = 0, style: str = "F") -> None:
        self._guard(h, dy)
        self._pdf.set_fill_color(*color)
        self._pdf.set_draw_color(*color)
        self._pdf.rect(x, self._y + dy, w, h, style=style)

    def line(self, x1: float, x2: float, color: RGB, *, dy: float = 0, width: float = 0.2) -> None:
        self._guard(dy)
        self._pdf.set_draw_color(*color)
        self._pdf.set_line_width(width)
        self._pdf.line(x1, self._y + dy, x2, self._y + dy)
        self._pdf.set_line_width(0.2)

    def image(
        self,
        data: bytes | None,
        x: float,
        w: float,
        h: float,
        *,
        dy: float = 0,
        keep_aspect: bool = False,
    ) -> bool:
        """Draw image bytes; a missing or undecodable asset is skipped."""
        if not data:
            return False
        self._guard(h, dy)
        try:
            self._pdf.image(
                io.BytesIO(data), x=x, y=self._y + dy, w=w, h=h, keep_aspect_ratio=keep_aspect,
            )
        except Exception as exc:
            log.warning("Skipping undrawable image on page %d: %s", self.page, exc)
            return False
        return True

    # ── Wrapped text ──────────────────────────────────────────────────

    def wrap(self, text: str, width: float = CONTENT_W) -> list[str]:
        """Split text into lines that fit ``width`` in the current font."""
        if not text or not text.strip():
            return []
        lines = self._pdf.multi_cell(
            width, 4, self.safe(text), dry_run=True, output=MethodReturnValue.LINES,
        )
        return list(lines)

    def write_lines(
        self,
        lines: list[str],
        line_height: float,
        *,
        x: float = MARGIN_X,
        w: float = CONTENT_W,
        align: str = "L",
    ) -> None:
        """Draw pre-wrapped lines, breaking pages only when a line would not fit.

        A block that fits on an empty page is kept together; taller blocks
        flow line by line.
        """
        if not lines:
            return
        block = len(lines) * line_height
        if block <= self.usable_height + _EPS:
            self.ensure_space(block)
        for line in lines:
            self.ensure_space(line_height)
            self.text(line, h=line_height, x=x, w=w, align=align)

    def paragraph(
        self,
        text: str,
        *,
        line_height: float = 4.5,
        x: float = MARGIN_X,
        w: float = CONTENT_W,
        align: str = "L",
    ) -> int:
        """Wrap and draw text in the current font. Returns the line count."""
        lines = self.wrap(text, w)
        self.write_lines(lines, line_height, x=x, w=w, align=align)
        return len(lines)
