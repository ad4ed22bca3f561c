"""Section renderers, in document order.

Every renderer takes the page manager and the render context and returns the
page manager. Conditional sections draw nothing when their data is absent, so
they leave no trace in the outline and consume no height.
"""

from __future__ import annotations

from audit_report.models import SEVERITY_ORDER, Overview, Severity
from audit_report.render._helpers import (
    ACCENT,
    BODY,
    CHARCOAL,
    DIVIDER,
    FAINT,
    GOOD,
    MUTED,
    SEV_COLORS,
    SEV_ICONS,
    WARN,
    WHITE,
    capitalize,
    flag_label,
    format_date,
    format_number,
    long_date,
    or_na,
    score_color,
)
from audit_report.render.blocks import badge, heading, subheading
from audit_report.render.context import RenderContext
from audit_report.render.findings import render_detailed_findings
from audit_report.render.layout import CONTENT_W, MARGIN_X, PAGE_W, PageManager
from audit_report.render.table import CellContext, TableSpec, TableTheme, draw_table

_KV_WIDTHS = (55.0, 125.0)
_ICON = 4.0

SEVERITY_LEGEND = {
    Severity.CRITICAL: "Can lead to loss of funds or contract takeover. Fix before launch.",
    Severity.HIGH: "Significant risk to users or funds under realistic conditions.",
    Severity.MEDIUM: "Limited impact or requires unlikely preconditions to exploit.",
    Severity.LOW: "Minor deviation from best practice with little direct risk.",
    Severity.INFORMATIONAL: "Style, gas or documentation notes. No security impact.",
}

RECOMMENDATIONS = (
    "Monitor contract activity regularly",
    "Implement multi-signature wallet for critical functions",
    "Consider time-locks for sensitive operations",
    "Maintain transparency with the community",
    "Keep contract verified on block explorer",
    "Document all functions and their purposes",
)

DISCLAIMER = (
    "Disclaimer: This audit does not guarantee the security of the contract. It represents "
    "our professional opinion based on the code review at the time of the audit. Smart "
    "contracts can have vulnerabilities not detected during the audit process."
)

# (label, overview attribute, risky). Risky flags get a pass/fail icon.
CONTRACT_CHECKS = (
    ("Honeypot", "honeypot", True),
    ("Hidden Owner", "hidden_owner", True),
    ("Mint Function", "mint", True),
    ("Blacklist", "blacklist", True),
    ("Whitelist", "whitelist", False),
    ("Proxy", "proxy_check", True),
)

SECURITY_CHECKS = (
    ("Honeypot", "honeypot", True),
    ("Hidden Owner", "hidden_owner", True),
    ("Max Tax", "max_tax", True),
    ("Modify Tax", "modify_tax", True),
    ("Trading Cooldown", "trading_cooldown", True),
    ("Anti-Whale", "anti_whale", False),
    ("Anti-Bot", "anti_bot", False),
    ("Blacklist", "blacklist", True),
    ("Whitelist", "whitelist", False),
    ("Mint Function", "mint", True),
    ("Pause Trading", "pause_trade", True),
    ("Pause Transfer", "pause_transfer", True),
    ("Can Take Ownership", "can_take_ownership", True),
    ("Self Destruct", "self_destruct", True),
    ("External Call", "external_call", True),
    ("Proxy Contract", "proxy_check", True),
    ("Cannot Buy", "cannot_buy", True),
    ("Cannot Sell", "cannot_sell", True),
    ("Max Transaction", "max_transaction", False),
    ("Max Wallet", "max_wallet", False),
    ("Trading Toggle", "enable_trading", True),
    ("Other Risks", "others", True),
)


def verdict(score: float | None) -> tuple[str, str, tuple[int, int, int]]:
    """(headline, lead-in, colour) for the closing recommendations block."""
    score = score or 0
    if score >= 80:
        return (
            "Contract meets security standards",
            "The contract has passed our security review with a high score. However, we recommend:",
            GOOD,
        )
    if score >= 60:
        return (
            "Contract requires improvements",
            "The contract has moderate security concerns that should be addressed:",
            WARN,
        )
    return (
        "Contract has critical issues",
        "The contract has significant security issues that must be resolved before deployment:",
        ACCENT,
    )


def _score_text(score: float | None) -> str:
    return "N/A" if score is None else f"{score:g}"


def _kv_table(pm: PageManager, rows: list[tuple[str, str]], label: str, header=("Property", "Value")) -> None:
    draw_table(pm, TableSpec(rows=rows, widths=_KV_WIDTHS, header=header, label=label))
    pm.advance(2)


def _flag_rows(overview: Overview, checks) -> tuple[list[list[str]], list[bool | None]]:
    """Table rows plus, per row, True/False for pass/fail or None for no icon."""
    rows, marks = [], []
    for label, attr, risky in checks:
        present = getattr(overview, attr)
        rows.append([label, flag_label(present, risky)])
        marks.append(not present if risky else None)
    return rows, marks


def _pass_fail_hook(ctx: RenderContext, marks: list[bool | None]):
    def hook(pm: PageManager, cell: CellContext) -> None:
        if cell.is_header or cell.col != 1 or cell.row >= len(marks):
            return
        passed = marks[cell.row]
        if passed is None:
            return
        icon = ctx.icon("pass" if passed else "fail")
        pm.image(icon, cell.x + cell.w - _ICON - 2, _ICON, _ICON, dy=(cell.h - _ICON) / 2)
    return hook


# ── Cover ───────────────────────────────────────────────────────────────────


def render_cover(pm: PageManager, ctx: RenderContext) -> PageManager:
    r = ctx.record
    with pm.section("Cover"):
        pm.place(pm.top)
        pm.rect(0, PAGE_W, 100, CHARCOAL)
        pm.rect(0, PAGE_W, 1.5, ACCENT, dy=100)

        pm.font("", 11)
        pm.color((214, 221, 224))
        pm.text("Smart Contract Security Audit Report", h=6, x=MARGIN_X + 5, w=120, dy=20, advance=False)

        pm.font("B", 24)
        pm.color(WHITE)
        title = f"{r.name} {capitalize(r.platform or 'Token')}"
        title_lines = pm.wrap(title, 120)[:3]
        for i, line in enumerate(title_lines):
            pm.text(line, h=11, x=MARGIN_X + 5, w=120, dy=32 + i * 11, advance=False)

        logo = ctx.logo()
        if logo and pm.image(logo, 145, 45, 45, dy=25, keep_aspect=True):
            pm.mark("image", "logo")

        pm.place(pm.top + 115)
        pm.font("", 12)
        pm.color(BODY)
        pm.text(long_date(ctx.generated), h=7, x=MARGIN_X + 5)
        pm.text(f"Audit Status: {'Published' if r.published else 'Draft'}", h=7, x=MARGIN_X + 5)
        if r.launchpad:
            pm.text(f"Launchpad: {r.launchpad}", h=7, x=MARGIN_X + 5)

        pm.place(pm.bottom - 14)
        pm.font("B", 11)
        pm.color(CHARCOAL)
        pm.text(f"{ctx.settings.org_name} Security Audits", h=6, align="C")
        pm.font("", 8)
        pm.color(MUTED)
        pm.text("Prepared for the project team and its community", h=5, align="C")
    return pm


# ── Executive summary ───────────────────────────────────────────────────────


def _score_gauge(pm: PageManager, score: float | None) -> None:
    box_w, box_h = 50.0, 26.0
    x = (PAGE_W - box_w) / 2
    pm.ensure_space(box_h + 4)
    pm.rect(x, box_w, box_h, FAINT if score is None else score_color(score))
    pm.font("B", 24)
    pm.color(WHITE)
    pm.text(_score_text(score), h=12, x=x, w=box_w, align="C", dy=3, advance=False)
    pm.font("", 8)
    pm.text("Audit Score", h=5, x=x, w=box_w, align="C", dy=17, advance=False)
    pm.advance(box_h + 4)


def _score_bars(pm: PageManager, ctx: RenderContext) -> None:
    s = ctx.record.scores
    bars = [
        (label, value)
        for label, value in (
            ("Owner", s.owner), ("Social", s.social), ("Security", s.security), ("Auditor", s.auditor),
        )
        if value is not None
    ]
    if not bars:
        return
    track_x, track_w = MARGIN_X + 35, 110.0
    subheading(pm, "Score Breakdown", keep_with=7 * len(bars))
    for label, value in bars:
        pm.ensure_space(7)
        pm.font("", 9)
        pm.color(BODY)
        pm.text(label, h=5, w=35, advance=False)
        pm.rect(track_x, track_w, 4, DIVIDER, dy=0.5)
        if value > 0:
            pm.rect(track_x, track_w * value / 100, 4, score_color(value), dy=0.5)
        pm.font("B", 9)
        pm.text(f"{value:g}/100", h=5, x=track_x + track_w, w=CONTENT_W - 35 - track_w, align="R", advance=False)
        pm.advance(7)


def _severity_legend(pm: PageManager, ctx: RenderContext) -> None:
    subheading(pm, "Issue Classification", keep_with=6 * len(SEVERITY_ORDER))
    for sev in SEVERITY_ORDER:
        pm.ensure_space(6)
        pm.image(ctx.icon(SEV_ICONS[sev]), MARGIN_X, _ICON, _ICON, dy=0.5)
        pm.font("B", 9)
        pm.color(SEV_COLORS[sev][0])
        pm.text(sev.value, h=5, x=MARGIN_X + 6, w=30, advance=False)
        pm.font("", 8.5)
        pm.color(BODY)
        pm.text(SEVERITY_LEGEND[sev], h=5, x=MARGIN_X + 36, w=CONTENT_W - 36)
        pm.advance(1)


def render_executive_summary(pm: PageManager, ctx: RenderContext) -> PageManager:
    pm.new_page()
    with pm.section("Executive Summary"):
        heading(pm, "Executive Summary", keep_with=34)
        _score_gauge(pm, ctx.record.scores.overall)
        _score_bars(pm, ctx)

        pm.ensure_space(9)
        pm.advance(2)
        pm.font("", 11)
        pm.color(MUTED)
        pm.text(f"Confidence: {ctx.record.confidence}", h=7, align="C")

        _severity_legend(pm, ctx)
    return pm


# ── Project information ─────────────────────────────────────────────────────


def render_risk_analysis(pm: PageManager, ctx: RenderContext) -> PageManager:
    r = ctx.record
    c = r.contract_info
    with pm.section("Risk Analysis"):
        heading(pm, "Risk Analysis", keep_with=20)
        subheading(pm, "Project Information")
        rows = [
            ("Name", or_na(r.name)),
            ("Symbol", or_na(r.symbol)),
            ("Decimals", or_na(r.decimals)),
            ("Total Supply", format_number(r.supply)),
            ("Platform", or_na(r.platform)),
            ("Launchpad", or_na(r.launchpad)),
            ("Contract Name", or_na(c.name)),
            ("Contract Address", or_na(c.address)),
            ("Language", or_na(c.language)),
            ("Compiler", or_na(c.compiler)),
            ("License", or_na(c.license)),
            ("Owner", or_na(c.owner)),
            ("Deployer", or_na(c.deployer)),
            ("Created", format_date(c.created)),
            ("Verified", "Yes" if c.verified else "No"),
        ]
        _kv_table(pm, rows, "project-info")

        if r.description.strip():
            subheading(pm, "Description", keep_with=9)
            pm.font("", 9)
            pm.color(BODY)
            pm.paragraph(r.description)
    return pm


def render_timeline(pm: PageManager, ctx: RenderContext) -> PageManager:
    t = ctx.record.timeline
    milestones = [
        ("Audit Request", t.request),
        ("Onboarding Process", t.onboarding),
        ("Audit Preview", t.preview),
        ("Audit Release", t.release),
    ]
    with pm.section("Timeline"):
        heading(pm, "Timeline", keep_with=12)
        rows = [(label, format_date(value)) for label, value in milestones]
        _kv_table(pm, rows, "timeline", header=("Milestone", "Date"))
    return pm


def render_kyc(pm: PageManager, ctx: RenderContext) -> PageManager:
    k = ctx.record.kyc
    with pm.section("KYC"):
        if not k.is_present:
            return pm
        heading(pm, "KYC Verification", keep_with=12)
        rows = [
            ("Status", "Verified" if k.is_kyc else "Not verified"),
            ("Vendor", or_na(k.vendor)),
            ("Score", _score_text(k.score)),
            ("Certificate", or_na(k.url)),
        ]
        _kv_table(pm, rows, "kyc")
        if k.notes.strip():
            pm.font("", 8.5)
            pm.color(MUTED)
            pm.paragraph(k.notes, line_height=4.2)
    return pm


def render_token_distribution(pm: PageManager, ctx: RenderContext) -> PageManager:
    td = ctx.record.token_distribution
    with pm.section("Token Distribution"):
        if not td.should_render:
            return pm
        heading(pm, "Token Distribution", keep_with=12)
        rows = [
            [or_na(d.name), format_number(d.amount), d.description.strip()]
            for d in td.distributions
        ]
        draw_table(pm, TableSpec(
            rows=rows,
            widths=(50, 40, 90),
            header=("Allocation", "Amount", "Description"),
            label="distribution",
        ))
        pm.advance(2)
        if td.liquidity_lock:
            subheading(pm, "Liquidity Lock", keep_with=12)
            _kv_table(pm, [
                ("Amount", or_na(td.lock_amount)),
                ("Location", or_na(td.lock_location)),
                ("Link", or_na(td.lock_link)),
            ], "liquidity-lock")
    return pm


# ── Findings summary ────────────────────────────────────────────────────────


def render_findings_summary(pm: PageManager, ctx: RenderContext) -> PageManager:
    tiers = ctx.record.severity_tiers

    def icon_hook(pm: PageManager, cell: CellContext) -> None:
        if cell.is_header or cell.col != 0:
            return
        severity = tiers[cell.row][0]
        pm.image(ctx.icon(SEV_ICONS[severity]), cell.x + cell.w - _ICON - 2, _ICON, _ICON,
                 dy=(cell.h - _ICON) / 2)

    with pm.section("Findings Summary"):
        heading(pm, "Findings Summary", keep_with=14)
        rows = [
            [sev.value, str(counts.found), str(counts.pending), str(counts.resolved)]
            for sev, counts in tiers
        ]
        draw_table(pm, TableSpec(
            rows=rows,
            widths=(60, 40, 40, 40),
            header=("Severity", "Found", "Pending", "Resolved"),
            theme=TableTheme(header_fill=ACCENT),
            label="findings-summary",
        ), icon_hook)

        pm.ensure_space(7)
        pm.advance(1)
        pm.font("B", 8.5)
        pm.color(BODY)
        pm.text(f"Total findings: {ctx.record.total_found}", h=5)
        pm.advance(1)
    return pm


# ── Overview tables ─────────────────────────────────────────────────────────


def render_contract_overview(pm: PageManager, ctx: RenderContext) -> PageManager:
    o = ctx.record.overview
    with pm.section("Contract Overview"):
        heading(pm, "Contract Overview", keep_with=14)
        rows, marks = _flag_rows(o, CONTRACT_CHECKS)
        rows.append(["Buy Tax", f"{o.buy_tax:g}%"])
        rows.append(["Sell Tax", f"{o.sell_tax:g}%"])
        draw_table(pm, TableSpec(
            rows=rows, widths=_KV_WIDTHS, header=("Check", "Result"), label="contract-overview",
        ), _pass_fail_hook(ctx, marks))
        pm.advance(2)
    return pm


def render_security_checks(pm: PageManager, ctx: RenderContext) -> PageManager:
    o = ctx.record.overview
    with pm.section("Token Security Checks"):
        heading(pm, "Token Security Checks", keep_with=14)
        rows, marks = _flag_rows(o, SECURITY_CHECKS)
        # the tax row carries the rates
        for row, (_, attr, _) in zip(rows, SECURITY_CHECKS):
            if attr == "max_tax":
                row[1] = f"{row[1]} (Buy: {o.buy_tax:g}%, Sell: {o.sell_tax:g}%)"
        draw_table(pm, TableSpec(
            rows=rows, widths=_KV_WIDTHS, header=("Check", "Result"), label="security-checks",
        ), _pass_fail_hook(ctx, marks))
        pm.advance(2)
    return pm


# ── Diagrams, socials, closing ──────────────────────────────────────────────


_DIAGRAMS = (("graph", "Call Graph"), ("inheritance", "Inheritance Graph"))
_DIAGRAM_H = 120.0


def render_diagrams(pm: PageManager, ctx: RenderContext) -> PageManager:
    with pm.section("Diagrams"):
        for kind, title in _DIAGRAMS:
            data = ctx.diagram(kind)
            if not data:
                continue
            heading(pm, title, keep_with=_DIAGRAM_H)
            if pm.image(data, MARGIN_X, CONTENT_W, _DIAGRAM_H, keep_aspect=True):
                pm.mark("image", kind)
                pm.advance(_DIAGRAM_H + 3)
    return pm


def render_social_links(pm: PageManager, ctx: RenderContext) -> PageManager:
    links = ctx.record.socials.links()
    with pm.section("Social Links"):
        if not links:
            return pm
        heading(pm, "Social Links", keep_with=12)
        _kv_table(pm, links, "socials", header=("Platform", "Link"))
    return pm


def render_recommendations(pm: PageManager, ctx: RenderContext) -> PageManager:
    title, lead, color = verdict(ctx.record.scores.overall)
    with pm.section("Recommendations"):
        heading(pm, "Recommendations", keep_with=16)
        pm.ensure_space(9)
        badge(pm, MARGIN_X, title, color, h=7, size=10)
        pm.advance(9)

        pm.font("", 9.5)
        pm.color(BODY)
        pm.paragraph(lead)
        pm.advance(1)
        for i, rec in enumerate(RECOMMENDATIONS, start=1):
            pm.ensure_space(5.5)
            pm.text(f"{i}. {rec}", h=5.5, x=MARGIN_X + 5)

        pm.ensure_space(6)
        pm.advance(6)
        pm.font("", 8)
        pm.color(FAINT)
        pm.paragraph(DISCLAIMER, line_height=4.0)
    return pm


# Document order. The cover opens page 1; the footer pass runs afterwards.
RENDERERS = (
    render_cover,
    render_executive_summary,
    render_risk_analysis,
    render_timeline,
    render_kyc,
    render_token_distribution,
    render_findings_summary,
    render_detailed_findings,
    render_contract_overview,
    render_security_checks,
    render_diagrams,
    render_social_links,
    render_recommendations,
)
