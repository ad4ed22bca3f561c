"""Tests for the page manager: cursor, pagination and the layout outline."""

import time

import pytest

from audit_report.errors import DeadlineExceeded, LayoutError
from audit_report.render.layout import (
    BOTTOM_MARGIN,
    PAGE_H,
    TOP_MARGIN,
    PageManager,
)

BOTTOM = PAGE_H - BOTTOM_MARGIN


def _pm(**kwargs) -> PageManager:
    pm = PageManager(**kwargs)
    pm.new_page()
    pm.font("", 9)
    return pm


def test_new_page_resets_cursor():
    pm = _pm()
    pm.advance(50)
    pm.new_page()
    assert pm.page == 2
    assert pm.y == TOP_MARGIN
    assert pm.outline.labels("break") == [""]


def test_ensure_space_exact_fit_stays_on_page():
    pm = _pm()
    pm.place(BOTTOM - 10)
    pm.ensure_space(10)
    assert pm.page == 1
    assert pm.y == BOTTOM - 10


def test_ensure_space_breaks_when_overflowing():
    pm = _pm()
    pm.place(BOTTOM - 10)
    cursor = pm.ensure_space(10.5)
    assert cursor.page == 2
    assert cursor.y == TOP_MARGIN


def test_advance_clamps_and_rejects_negative():
    pm = _pm()
    pm.advance(1000)
    assert pm.y == BOTTOM
    with pytest.raises(LayoutError):
        pm.advance(-1)


def test_draw_without_page_fails_fast():
    pm = PageManager()
    pm.font("", 9)
    with pytest.raises(LayoutError):
        pm.text("orphan", h=5)


def test_draw_across_bottom_margin_fails_fast():
    pm = _pm()
    pm.place(BOTTOM - 2)
    with pytest.raises(LayoutError):
        pm.text("too tall", h=5)


def test_place_outside_band_rejected():
    pm = _pm()
    with pytest.raises(LayoutError):
        pm.place(BOTTOM + 1)
    with pytest.raises(LayoutError):
        pm.place(TOP_MARGIN - 1)


def test_bad_margins_rejected():
    with pytest.raises(LayoutError):
        PageManager(top_margin=150, bottom_margin=150)


# -- Sections ------------------------------------------------------------------


def test_empty_section_not_recorded():
    pm = _pm()
    before = pm.cursor
    with pm.section("Empty"):
        pass
    assert pm.outline.sections == []
    assert pm.cursor == before


def test_section_records_start_and_end():
    pm = _pm()
    with pm.section("Intro"):
        pm.text("hello", h=10)
    mark = pm.outline.section("Intro")
    assert mark is not None
    assert mark.start.y == TOP_MARGIN
    assert mark.end.y == TOP_MARGIN + 10
    assert pm.outline.section_names() == ["Intro"]


def test_section_checks_deadline():
    pm = _pm(deadline=time.monotonic() - 1)
    with pytest.raises(DeadlineExceeded):
        with pm.section("Late"):
            pm.text("never drawn", h=5)


# -- Wrapped text --------------------------------------------------------------


def test_wrap_respects_width():
    pm = _pm()
    text = "word " * 200
    lines = pm.wrap(text, 60)
    assert len(lines) > 1
    for line in lines:
        assert pm.string_width(line) <= 60 + 0.01


def test_wrap_blank_text():
    pm = _pm()
    assert pm.wrap("   ") == []


def test_block_kept_together_when_it_fits_a_page():
    pm = _pm()
    pm.place(BOTTOM - 12)
    pm.write_lines(["one", "two", "three", "four"], 5)
    assert pm.page == 2
    assert pm.y == TOP_MARGIN + 20


def test_long_block_breaks_exactly_at_bottom_margin():
    pm = _pm()
    per_page = int((BOTTOM - TOP_MARGIN) // 5)    # 51 lines of 5mm
    lines = [f"line {i}" for i in range(per_page + 9)]
    pm.write_lines(lines, 5)
    assert pm.page == 2
    assert pm.y == pytest.approx(TOP_MARGIN + 9 * 5)
    assert len(pm.outline.labels("break")) == 1


def test_long_block_starting_mid_page_fills_remaining_space_first():
    pm = _pm()
    pm.place(BOTTOM - 12)
    lines = [f"line {i}" for i in range(80)]
    pm.write_lines(lines, 5)
    # two lines fit above the margin before the first break
    remaining = 80 - 2
    per_page = int((BOTTOM - TOP_MARGIN) // 5)
    assert pm.page == 3
    assert pm.y == pytest.approx(TOP_MARGIN + (remaining - per_page) * 5)


def test_paragraph_returns_line_count():
    pm = _pm()
    n = pm.paragraph("short text")
    assert n == 1
    assert pm.y == pytest.approx(TOP_MARGIN + 4.5)
