"""Generic table renderer with a per-cell drawing hook.

Rows are word-wrapped per column; the row height is the tallest cell. Space is
checked per row, and the header row is repeated at the top of every page the
table continues onto. A row taller than a page continues its remaining lines
on the following pages.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from audit_report.errors import LayoutError
from audit_report.render._helpers import ALT_ROW, BODY, CHARCOAL, DIVIDER, RGB, WHITE
from audit_report.render.layout import CONTENT_W, MARGIN_X, Cursor, PageManager

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableTheme:
    header_fill: RGB = CHARCOAL
    header_text: RGB = WHITE
    header_size: float = 8
    body_text: RGB = BODY
    body_size: float = 8
    alt_fill: RGB | None = ALT_ROW
    grid: RGB | None = DIVIDER
    line_height: float = 4.2
    padding: float = 1.2     # above and below the text in each row


@dataclass(frozen=True)
class TableSpec:
    rows: Sequence[Sequence[str]]
    widths: Sequence[float]
    header: Sequence[str] | None = None
    theme: TableTheme = field(default_factory=TableTheme)
    x: float = MARGIN_X
    label: str = ""          # outline tag for row events


@dataclass(frozen=True)
class CellContext:
    """Where a cell was drawn. ``dy`` offsets are relative to the cursor (row top)."""
    row: int                 # -1 for the header row
    col: int
    text: str
    x: float
    w: float
    h: float

    @property
    def is_header(self) -> bool:
        return self.row < 0


CellHook = Callable[[PageManager, CellContext], None]


def _validate(spec: TableSpec) -> None:
    ncols = len(spec.widths)
    if ncols == 0:
        raise LayoutError("table has no columns")
    if sum(spec.widths) > CONTENT_W + 1e-6:
        raise LayoutError(f"table width {sum(spec.widths):.1f} exceeds content width {CONTENT_W:.1f}")
    if spec.header is not None and len(spec.header) != ncols:
        raise LayoutError(f"header has {len(spec.header)} cells, expected {ncols}")
    for i, row in enumerate(spec.rows):
        if len(row) != ncols:
            raise LayoutError(f"row {i} has {len(row)} cells, expected {ncols}")


def _wrap_row(pm: PageManager, cells: Sequence[str], widths: Sequence[float]) -> list[list[str]]:
    return [pm.wrap(str(text), w) or [""] for text, w in zip(cells, widths)]


def _row_height(wrapped: list[list[str]], theme: TableTheme) -> float:
    return max(len(lines) for lines in wrapped) * theme.line_height + 2 * theme.padding


def _draw_row(
    pm: PageManager,
    spec: TableSpec,
    index: int,
    cells: Sequence[str],
    wrapped: list[list[str]],
    height: float,
    fill: RGB | None,
    cell_hook: CellHook | None,
    font: tuple[str, float, RGB],
) -> None:
    theme = spec.theme
    style, size, color = font
    total_w = sum(spec.widths)
    if fill is not None:
        pm.rect(spec.x, total_w, height, fill)

    x = spec.x
    for col, (text, lines, w) in enumerate(zip(cells, wrapped, spec.widths)):
        # hooks may change font state
        pm.font(style, size)
        pm.color(color)
        for k, line in enumerate(lines):
            pm.text(line, h=theme.line_height, x=x, w=w,
                    dy=theme.padding + k * theme.line_height, advance=False)
        if cell_hook is not None:
            cell_hook(pm, CellContext(row=index, col=col, text=str(text), x=x, w=w, h=height))
        x += w

    if theme.grid is not None and index >= 0:
        pm.line(spec.x, spec.x + total_w, theme.grid, dy=height)
    pm.advance(height)


def _draw_header(pm: PageManager, spec: TableSpec, cell_hook: CellHook | None) -> None:
    theme = spec.theme
    pm.font("B", theme.header_size)
    wrapped = _wrap_row(pm, spec.header, spec.widths)
    height = _row_height(wrapped, theme)
    pm.ensure_space(height)
    _draw_row(pm, spec, -1, spec.header, wrapped, height, theme.header_fill, cell_hook,
              ("B", theme.header_size, theme.header_text))


def _continue_on_new_page(pm: PageManager, spec: TableSpec, cell_hook: CellHook | None) -> None:
    pm.new_page()
    if spec.header is not None:
        _draw_header(pm, spec, cell_hook)


def _draw_split_row(
    pm: PageManager,
    spec: TableSpec,
    index: int,
    cells: Sequence[str],
    wrapped: list[list[str]],
    fill: RGB | None,
    cell_hook: CellHook | None,
    font: tuple[str, float, RGB],
) -> None:
    """Draw a row taller than a page as consecutive blocks of lines.

    Each block fills the space left on the page; the header is repeated above
    every continuation. The hook runs for the first block only.
    """
    theme = spec.theme
    log.debug("Table %s row %d taller than a page; splitting", spec.label or "?", index)
    hook = cell_hook
    while any(wrapped):
        fit = int((pm.remaining - 2 * theme.padding + 1e-6) // theme.line_height)
        if fit < 1:
            _continue_on_new_page(pm, spec, cell_hook)
            continue
        block = [lines[:fit] for lines in wrapped]
        wrapped = [lines[fit:] for lines in wrapped]
        _draw_row(pm, spec, index, cells, block, _row_height(block, theme), fill, hook, font)
        hook = None
        if any(wrapped):
            _continue_on_new_page(pm, spec, cell_hook)


def draw_table(pm: PageManager, spec: TableSpec, cell_hook: CellHook | None = None) -> Cursor:
    """Lay out ``spec`` at the cursor and return the cursor below the table."""
    _validate(spec)
    theme = spec.theme

    header_h = 0.0
    if spec.header is not None:
        pm.font("B", theme.header_size)
        header_h = _row_height(_wrap_row(pm, spec.header, spec.widths), theme)

    # Keep the header with the first row.
    first_h = 0.0
    if spec.rows:
        pm.font("", theme.body_size)
        first_h = _row_height(_wrap_row(pm, spec.rows[0], spec.widths), theme)
    if header_h + first_h <= pm.usable_height:
        pm.ensure_space(header_h + first_h)

    if spec.header is not None:
        _draw_header(pm, spec, cell_hook)

    body_font = ("", theme.body_size, theme.body_text)
    for i, row in enumerate(spec.rows):
        pm.font("", theme.body_size)
        wrapped = _wrap_row(pm, row, spec.widths)
        height = _row_height(wrapped, theme)
        fill = theme.alt_fill if i % 2 == 1 else None

        if height <= pm.usable_height - header_h:
            page = pm.page
            pm.ensure_space(height)
            if pm.page != page and spec.header is not None:
                _draw_header(pm, spec, cell_hook)
            _draw_row(pm, spec, i, row, wrapped, height, fill, cell_hook, body_font)
        else:
            _draw_split_row(pm, spec, i, row, wrapped, fill, cell_hook, body_font)
        pm.mark("row", "|".join([spec.label, *map(str, row)]))

    return pm.cursor
