"""Small drawing blocks shared by the section renderers."""

from __future__ import annotations

from audit_report.render._helpers import ACCENT, BODY, DIVIDER, RGB, WHITE
from audit_report.render.layout import CONTENT_W, MARGIN_X, PageManager

HEADING_H = 8.0
SUBHEADING_H = 6.0
LINE_H = 4.5


def heading(pm: PageManager, text: str, *, keep_with: float = 12) -> None:
    """Section title with a red underline; kept on the same page as ``keep_with`` mm of content."""
    pm.ensure_space(4 + HEADING_H + 3 + keep_with)
    pm.advance(4)
    pm.font("B", 14)
    pm.color(BODY)
    pm.text(text, h=HEADING_H)
    pm.line(MARGIN_X, MARGIN_X + 40, ACCENT, width=0.8)
    pm.advance(3)
    pm.mark("heading", text)


def subheading(pm: PageManager, text: str, *, keep_with: float = 8) -> None:
    pm.ensure_space(2 + SUBHEADING_H + keep_with)
    pm.advance(2)
    pm.font("B", 11)
    pm.color(BODY)
    pm.text(text, h=SUBHEADING_H)


def badge(
    pm: PageManager,
    x: float,
    label: str,
    fill: RGB,
    *,
    text_color: RGB = WHITE,
    h: float = 5,
    size: float = 7.5,
    dy: float = 0,
) -> float:
    """Filled pill with centred bold text at (x, cursor + dy). Returns its width."""
    pm.font("B", size)
    w = pm.string_width(label) + 6
    pm.rect(x, w, h, fill, dy=dy)
    pm.color(text_color)
    pm.pdf.set_xy(x, pm.y + dy)
    pm.pdf.cell(w, h, pm.safe(label), align="C")
    return w


def divider(pm: PageManager, *, gap: float = 3) -> None:
    pm.ensure_space(2 * gap)
    pm.advance(gap)
    pm.line(MARGIN_X, MARGIN_X + CONTENT_W, DIVIDER)
    pm.advance(gap)


def labelled_block(
    pm: PageManager,
    label: str,
    text: str,
    *,
    x: float = MARGIN_X,
    w: float = CONTENT_W,
    line_height: float = 4.2,
) -> None:
    """Bold label followed by word-wrapped body text.

    The label and body are kept together when they fit on one page;
    otherwise the label stays with at least the first body line.
    """
    if not text.strip():
        return
    pm.font("", 8.5)
    lines = pm.wrap(text, w)
    block = LINE_H + len(lines) * line_height
    if block <= pm.usable_height:
        pm.ensure_space(block)
    else:
        pm.ensure_space(LINE_H + line_height)
    pm.font("B", 8.5)
    pm.color(BODY)
    pm.text(label, h=LINE_H, x=x, w=w)
    pm.font("", 8.5)
    pm.write_lines(lines, line_height, x=x, w=w)
