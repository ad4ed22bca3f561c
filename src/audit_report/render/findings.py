"""Detailed findings: active filter, severity grouping and the finding cards."""

from __future__ import annotations

from collections.abc import Iterable

from audit_report.models import SEVERITY_ORDER, Finding, FindingStatus, Severity
from audit_report.render._helpers import (
    BODY,
    GOOD,
    MUTED,
    SEV_COLORS,
    STATUS_ICONS,
    or_na,
)
from audit_report.render.blocks import LINE_H, badge, divider, heading, labelled_block
from audit_report.render.context import RenderContext
from audit_report.render.layout import CONTENT_W, MARGIN_X, PageManager

AFFIRMATION = "No critical findings were identified"

# Severities that get the accent bar and URGENT badge.
PRIORITY = (Severity.CRITICAL, Severity.HIGH)

_TITLE_H = 5.0
_BADGE_ROW_H = 6.5
_BUCKET_H = 8.0
_INDENT = 4.0


def active_findings(findings: Iterable[Finding]) -> list[Finding]:
    return [f for f in findings if f.is_active]


def group_by_severity(findings: Iterable[Finding]) -> list[tuple[Severity, list[Finding]]]:
    """Bucket findings in fixed severity order, skipping empty buckets.

    Input order is kept within a bucket.
    """
    buckets: dict[Severity, list[Finding]] = {sev: [] for sev in SEVERITY_ORDER}
    for f in findings:
        buckets[f.severity].append(f)
    return [(sev, items) for sev, items in buckets.items() if items]


def status_icon(status: FindingStatus) -> str:
    return STATUS_ICONS[status]


def bucket_label(severity: Severity, count: int) -> str:
    return f"{severity.value} Issues ({count})"


def finding_title(f: Finding) -> str:
    return f"{f.id}: {f.title}" if f.id else f.title


# ── Drawing ─────────────────────────────────────────────────────────────────


def _bucket_header(pm: PageManager, severity: Severity, count: int) -> None:
    label = bucket_label(severity, count)
    # keep the header with the top of the first card
    pm.ensure_space(_BUCKET_H + _TITLE_H + _BADGE_ROW_H + LINE_H)
    pm.advance(1)
    badge(pm, MARGIN_X, label, SEV_COLORS[severity][0], h=6, size=9)
    pm.mark("bucket", label)
    pm.advance(_BUCKET_H - 1)


def _finding_card(pm: PageManager, ctx: RenderContext, f: Finding) -> None:
    solid, tint = SEV_COLORS[f.severity]
    x = MARGIN_X + _INDENT
    w = CONTENT_W - _INDENT

    pm.font("B", 10)
    title_lines = pm.wrap(finding_title(f), w)
    head_h = len(title_lines) * _TITLE_H + _BADGE_ROW_H + LINE_H
    pm.ensure_space(min(head_h + LINE_H + 4.2, pm.usable_height))
    pm.mark("finding", finding_title(f))

    if f.severity in PRIORITY:
        pm.rect(MARGIN_X, 1.2, min(head_h, pm.remaining), solid)

    pm.color(BODY)
    pm.write_lines(title_lines, _TITLE_H, x=x, w=w)

    # severity badge, status icon + label, URGENT
    pm.advance(0.5)
    bx = x
    bx += badge(pm, bx, f.severity.value, solid) + 3
    if pm.image(ctx.icon(status_icon(f.status)), bx, 4, 4, dy=0.5):
        bx += 5
    pm.font("", 8)
    pm.color(MUTED)
    status_w = pm.string_width(f.status.value) + 2
    pm.text(f.status.value, h=5, x=bx, w=status_w, advance=False)
    bx += status_w + 3
    if f.severity in PRIORITY:
        badge(pm, bx, "URGENT", tint, text_color=solid)
    pm.advance(_BADGE_ROW_H - 0.5)

    pm.font("", 8)
    pm.color(MUTED)
    pm.text(f"Category: {or_na(f.category)} | Location: {or_na(f.location)}", h=LINE_H, x=x, w=w)

    labelled_block(pm, "Description", f.description, x=x, w=w)
    labelled_block(pm, "Recommendation", f.recommendation, x=x, w=w)
    labelled_block(pm, "Mitigation", f.alleviation, x=x, w=w)
    divider(pm, gap=2.5)


def _affirmation(pm: PageManager) -> None:
    pm.ensure_space(16)
    pm.rect(MARGIN_X, CONTENT_W, 14, (220, 252, 231))
    pm.font("B", 10)
    pm.color(GOOD)
    pm.text(AFFIRMATION, h=6, x=MARGIN_X + 4, dy=2, advance=False)
    pm.font("", 8)
    pm.color(MUTED)
    pm.text("Every reported check passed or was not detected.", h=4, x=MARGIN_X + 4, dy=8, advance=False)
    pm.mark("block", AFFIRMATION)
    pm.advance(16)


def render_detailed_findings(pm: PageManager, ctx: RenderContext) -> PageManager:
    with pm.section("Detailed Findings"):
        groups = group_by_severity(active_findings(ctx.record.findings))
        heading(pm, "Detailed Findings", keep_with=_BUCKET_H + 16)
        if not groups:
            _affirmation(pm)
            return pm
        for severity, items in groups:
            _bucket_header(pm, severity, len(items))
            for f in items:
                _finding_card(pm, ctx, f)
    return pm
