"""Tests for finding filtering, grouping and the detailed findings section."""

from datetime import date

from audit_report.assets import AssetCache, AssetResolver
from audit_report.config import RenderSettings
from audit_report.models import AuditRecord, Finding, FindingStatus, Severity
from audit_report.render.context import RenderContext
from audit_report.render.findings import (
    AFFIRMATION,
    active_findings,
    group_by_severity,
    render_detailed_findings,
    status_icon,
)
from audit_report.render.layout import BOTTOM_MARGIN, PAGE_H, PageManager


def _finding(fid: str, severity: str, status: str = "Detected", **extra) -> Finding:
    return Finding.model_validate({"id": fid, "title": f"Finding {fid}", "severity": severity,
                                   "status": status, **extra})


def _ctx(findings: list[dict]) -> RenderContext:
    record = AuditRecord.model_validate({"name": "Demo", "slug": "demo", "findings": findings})
    settings = RenderSettings()
    return RenderContext(
        record=record,
        settings=settings,
        cache=AssetCache(),
        resolver=AssetResolver(settings),
        generated=date(2025, 1, 5),
    )


def _pm() -> PageManager:
    pm = PageManager()
    pm.new_page()
    return pm


# -- Pure helpers --------------------------------------------------------------


def test_group_order_fixed_and_empty_buckets_skipped():
    findings = [
        _finding("I1", "Informational"),
        _finding("M1", "Medium"),
        _finding("C1", "Critical"),
        _finding("M2", "Medium"),
    ]
    groups = group_by_severity(findings)
    assert [sev for sev, _ in groups] == [Severity.CRITICAL, Severity.MEDIUM, Severity.INFORMATIONAL]
    assert [f.id for f in groups[1][1]] == ["M1", "M2"]


def test_legacy_severity_names_grouped_canonically():
    groups = group_by_severity([_finding("A", "major"), _finding("B", "minor")])
    assert [sev for sev, _ in groups] == [Severity.HIGH, Severity.LOW]


def test_active_filter():
    findings = [
        _finding("A", "High", "Pass"),
        _finding("B", "High", "Fail"),
        _finding("C", "Low", "Not Detected"),
        _finding("D", "Low", "Acknowledge"),
    ]
    assert [f.id for f in active_findings(findings)] == ["B", "D"]


def test_status_icons():
    assert status_icon(FindingStatus.DETECTED) == "pending"
    assert status_icon(FindingStatus.FAIL) == "pending"
    assert status_icon(FindingStatus.PASS) == "resolved"
    assert status_icon(FindingStatus.NOT_DETECTED) == "resolved"
    assert status_icon(FindingStatus.ACKNOWLEDGE) == "ack"


# -- Rendering -----------------------------------------------------------------


def test_buckets_rendered_in_severity_order():
    ctx = _ctx([
        {"id": "CFG02", "title": "Missing event", "severity": "Informational"},
        {"id": "CFG01", "title": "Owner can drain", "severity": "Critical"},
        {"id": "CFG03", "title": "Passed check", "severity": "High", "status": "Pass"},
    ])
    pm = render_detailed_findings(_pm(), ctx)
    assert pm.outline.labels("bucket") == ["Critical Issues (1)", "Informational Issues (1)"]
    assert pm.outline.labels("finding") == ["CFG01: Owner can drain", "CFG02: Missing event"]
    assert pm.outline.labels("block") == []
    assert pm.outline.section_names() == ["Detailed Findings"]


def test_all_passing_gives_affirmation_block():
    ctx = _ctx([
        {"id": "CFG01", "severity": "Critical", "status": "Pass"},
        {"id": "CFG02", "severity": "Low", "status": "Not Detected"},
    ])
    pm = render_detailed_findings(_pm(), ctx)
    assert pm.outline.labels("bucket") == []
    assert pm.outline.labels("finding") == []
    assert pm.outline.labels("block") == [AFFIRMATION]


def test_no_findings_gives_affirmation_block():
    pm = render_detailed_findings(_pm(), _ctx([]))
    assert pm.outline.labels("block") == [AFFIRMATION]


def test_long_findings_paginate_inside_band():
    text = "This function lets the owner change fees without limits. " * 40
    ctx = _ctx([
        {"id": f"CFG{i:02d}", "title": "Centralisation risk", "severity": "High",
         "description": text, "recommendation": text, "alleviation": "Acknowledged by the team.",
         "location": "Token.sol#L120", "category": "Centralization"}
        for i in range(8)
    ])
    pm = render_detailed_findings(_pm(), ctx)
    assert pm.page > 1
    assert len(pm.outline.labels("finding")) == 8
    bottom = PAGE_H - BOTTOM_MARGIN
    for event in pm.outline.events:
        assert event.at.y <= bottom


def test_finding_without_id_uses_title():
    ctx = _ctx([{"title": "Anonymous", "severity": "Low"}])
    pm = render_detailed_findings(_pm(), ctx)
    assert pm.outline.labels("finding") == ["Anonymous"]
