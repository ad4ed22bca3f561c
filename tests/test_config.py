"""Tests for settings loading."""

import pytest

from audit_report.config import RenderSettings, load_settings


def test_defaults():
    s = load_settings()
    assert s == RenderSettings()
    assert s.org_tag == "CFGNINJA"
    assert s.render_timeout == 120.0


def test_yaml_file_and_overrides(tmp_path):
    cfg = tmp_path / "settings.yaml"
    cfg.write_text("org_name: Acme Audits\norg_tag: ACME\nprefetch_workers: 2\n")

    s = load_settings(cfg, org_tag="ACME2", logo_base=None)
    assert s.org_name == "Acme Audits"
    assert s.org_tag == "ACME2"
    assert s.prefetch_workers == 2
    assert s.logo_base == ""


def test_empty_yaml_gives_defaults(tmp_path):
    cfg = tmp_path / "empty.yaml"
    cfg.write_text("")
    assert load_settings(cfg) == RenderSettings()


def test_non_mapping_yaml_rejected(tmp_path):
    cfg = tmp_path / "list.yaml"
    cfg.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        load_settings(cfg)


def test_invalid_values_rejected(tmp_path):
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("prefetch_workers: 0\n")
    with pytest.raises(ValueError):
        load_settings(cfg)
