"""Tests for the audit-report CLI."""

import json

from click.testing import CliRunner

from audit_report import __version__
from audit_report.cli import main


def _write(path, data):
    path.write_text(json.dumps(data))
    return path


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_render_single_record(tmp_path):
    src = _write(tmp_path / "demo.json", {"name": "Demo", "slug": "demo", "audit_score": 91})
    out = tmp_path / "out"
    result = CliRunner().invoke(main, ["render", str(src), "-o", str(out), "--date", "2025-01-05"])
    assert result.exit_code == 0, result.output
    pdf = out / "20250105_CFGNINJA_demo_Audit.pdf"
    assert pdf.read_bytes()[:5] == b"%PDF-"
    assert "PDF report written to" in result.output


def test_render_uses_config_file(tmp_path):
    cfg = tmp_path / "settings.yaml"
    cfg.write_text("org_tag: ACME\norg_name: Acme Audits\n")
    src = _write(tmp_path / "demo.json", {"name": "Demo", "slug": "demo"})
    out = tmp_path / "out"
    result = CliRunner().invoke(
        main, ["-c", str(cfg), "render", str(src), "-o", str(out), "--date", "2025-01-05"],
    )
    assert result.exit_code == 0, result.output
    assert (out / "20250105_ACME_demo_Audit.pdf").exists()


def test_render_rejects_list(tmp_path):
    src = _write(tmp_path / "many.json", [{"name": "A", "slug": "a"}])
    result = CliRunner().invoke(main, ["render", str(src)])
    assert result.exit_code != 0
    assert "batch" in result.output


def test_render_invalid_record_reports_error(tmp_path):
    src = _write(tmp_path / "bad.json", {"name": "Bad"})
    result = CliRunner().invoke(main, ["render", str(src), "-o", str(tmp_path)])
    assert result.exit_code == 1
    assert "slug" in result.output


def test_render_malformed_json(tmp_path):
    src = tmp_path / "broken.json"
    src.write_text("{not json")
    result = CliRunner().invoke(main, ["render", str(src)])
    assert result.exit_code == 1
    assert "Cannot read" in result.output


def test_batch_directory_with_failure(tmp_path):
    src = tmp_path / "records"
    src.mkdir()
    _write(src / "a.json", {"name": "A", "slug": "a"})
    _write(src / "b.json", [{"name": "B", "slug": "b"}, {"name": "C", "slug": "c", "critical": {"found": -2}}])
    out = tmp_path / "out"

    result = CliRunner().invoke(main, ["batch", str(src), "-o", str(out), "--date", "2025-01-05", "-j", "2"])
    assert result.exit_code == 1
    assert "ok    a" in result.output
    assert "ok    b" in result.output
    assert "FAIL  c" in result.output
    assert "2 rendered, 1 failed" in result.output
    assert sorted(p.name for p in out.iterdir()) == [
        "20250105_CFGNINJA_a_Audit.pdf",
        "20250105_CFGNINJA_b_Audit.pdf",
    ]


def test_batch_all_ok(tmp_path):
    src = _write(tmp_path / "list.json", [{"name": "A", "slug": "a"}])
    result = CliRunner().invoke(main, ["batch", str(src), "-o", str(tmp_path / "out")])
    assert result.exit_code == 0, result.output
    assert "1 rendered, 0 failed" in result.output
