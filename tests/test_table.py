"""Tests for the generic table renderer."""

import pytest

from audit_report.errors import LayoutError
from audit_report.render.layout import BOTTOM_MARGIN, PAGE_H, TOP_MARGIN, PageManager
from audit_report.render.table import TableSpec, draw_table

BOTTOM = PAGE_H - BOTTOM_MARGIN


def _pm() -> PageManager:
    pm = PageManager()
    pm.new_page()
    return pm


class _Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, pm, cell):
        self.calls.append((pm.page, cell.row, cell.col, cell.text))


def test_hook_runs_once_per_cell():
    pm = _pm()
    hook = _Recorder()
    spec = TableSpec(rows=[["a", "1"], ["b", "2"], ["c", "3"]], widths=(60, 60), header=("Name", "Value"))
    draw_table(pm, spec, hook)
    assert len(hook.calls) == 8
    assert hook.calls[:2] == [(1, -1, 0, "Name"), (1, -1, 1, "Value")]
    assert hook.calls[-1] == (1, 2, 1, "3")


def test_rows_recorded_in_outline():
    pm = _pm()
    draw_table(pm, TableSpec(rows=[["Critical", "1"], ["High", "0"]], widths=(60, 60), label="summary"))
    assert pm.outline.labels("row") == ["summary|Critical|1", "summary|High|0"]


def test_cursor_moves_below_table():
    pm = _pm()
    cursor = draw_table(pm, TableSpec(rows=[["x"]], widths=(100,)))
    assert cursor.page == 1
    assert cursor.y > TOP_MARGIN


def test_header_repeated_after_page_break():
    pm = _pm()
    hook = _Recorder()
    rows = [[f"row {i}", str(i)] for i in range(80)]
    draw_table(pm, TableSpec(rows=rows, widths=(90, 90), header=("Item", "Value")), hook)

    header_pages = [page for page, row, col, _ in hook.calls if row == -1 and col == 0]
    assert pm.page >= 2
    assert header_pages == list(range(1, pm.page + 1))
    assert len(pm.outline.labels("row")) == 80


def test_rows_never_cross_bottom_margin():
    pm = _pm()
    rows = [[f"row {i}", "text " * (i % 7 + 1) * 8] for i in range(60)]
    draw_table(pm, TableSpec(rows=rows, widths=(40, 60), header=("A", "B")))
    for event in pm.outline.events:
        assert TOP_MARGIN <= event.at.y <= BOTTOM


def test_header_kept_with_first_row():
    pm = _pm()
    pm.place(BOTTOM - 8)     # room for a header row but not header + first row
    hook = _Recorder()
    draw_table(pm, TableSpec(rows=[["a", "b"]], widths=(50, 50), header=("H1", "H2")), hook)
    assert hook.calls[0][:2] == (2, -1)


def test_row_taller_than_page_continues_on_next_pages():
    pm = _pm()
    hook = _Recorder()
    drawn = []
    draw_text = pm.text

    def record_text(text, **kwargs):
        drawn.append(text)
        draw_text(text, **kwargs)

    pm.text = record_text
    words = [f"w{i}" for i in range(3000)]
    draw_table(pm, TableSpec(rows=[["big", " ".join(words)]], widths=(30, 60),
                             header=("Name", "Text"), label="big"), hook)

    assert pm.page > 1
    assert set(" ".join(drawn).split()) >= set(words)
    assert "w2999" in drawn[-1].split()
    header_pages = [page for page, row, col, _ in hook.calls if row == -1 and col == 0]
    assert header_pages == list(range(1, pm.page + 1))
    assert [(row, col) for _, row, col, _ in hook.calls if row >= 0] == [(0, 0), (0, 1)]
    assert pm.outline.labels("row") == ["big|big|" + " ".join(words)]
    for event in pm.outline.events:
        assert event.at.y <= BOTTOM


def test_column_mismatch_rejected():
    pm = _pm()
    with pytest.raises(LayoutError):
        draw_table(pm, TableSpec(rows=[["a", "b", "c"]], widths=(50, 50)))
    with pytest.raises(LayoutError):
        draw_table(pm, TableSpec(rows=[], widths=(50, 50), header=("only one",)))


def test_too_wide_rejected():
    pm = _pm()
    with pytest.raises(LayoutError):
        draw_table(pm, TableSpec(rows=[["a", "b"]], widths=(100, 100)))


def test_empty_table_with_header():
    pm = _pm()
    hook = _Recorder()
    draw_table(pm, TableSpec(rows=[], widths=(50, 50), header=("A", "B")), hook)
    assert [c[1] for c in hook.calls] == [-1, -1]
    assert pm.outline.labels("row") == []
