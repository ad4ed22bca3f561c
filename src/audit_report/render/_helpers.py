"""Shared helpers for the PDF section renderers."""

from __future__ import annotations

from datetime import date, datetime

from audit_report.models import FindingStatus, Severity

RGB = tuple[int, int, int]

# severity -> (solid_rgb, tint_rgb)
SEV_COLORS: dict[Severity, tuple[RGB, RGB]] = {
    Severity.CRITICAL:      ((220, 38, 38), (254, 226, 226)),
    Severity.HIGH:          ((249, 115, 22), (255, 237, 213)),
    Severity.MEDIUM:        ((234, 179, 8), (254, 249, 195)),
    Severity.LOW:           ((34, 197, 94), (220, 252, 231)),
    Severity.INFORMATIONAL: ((156, 163, 175), (243, 244, 246)),
}

# Icon drawn next to a finding for each status. Every member is listed; a new
# status without an entry fails the lookup instead of falling through.
STATUS_ICONS: dict[FindingStatus, str] = {
    FindingStatus.DETECTED: "pending",
    FindingStatus.FAIL: "pending",
    FindingStatus.PASS: "resolved",
    FindingStatus.NOT_DETECTED: "resolved",
    FindingStatus.ACKNOWLEDGE: "ack",
}

SEV_ICONS: dict[Severity, str] = {
    Severity.CRITICAL: "critical",
    Severity.HIGH: "high",
    Severity.MEDIUM: "medium",
    Severity.LOW: "low",
    Severity.INFORMATIONAL: "informational",
}

CHARCOAL: RGB = (30, 30, 30)
WHITE: RGB = (255, 255, 255)
BODY: RGB = (60, 60, 60)
MUTED: RGB = (100, 100, 100)
FAINT: RGB = (150, 150, 150)
DIVIDER: RGB = (220, 220, 220)
ALT_ROW: RGB = (248, 249, 250)
ACCENT: RGB = (239, 68, 68)
GOOD: RGB = (22, 163, 74)
WARN: RGB = (245, 158, 11)

# Unicode -> ASCII substitutions for PDF core fonts (latin-1 only).
_UNICODE_SUBS = str.maketrans({
    "\u2014": "--",   # em dash
    "\u2013": "-",    # en dash
    "\u2018": "'",    # left single quote
    "\u2019": "'",    # right single quote
    "\u201c": '"',    # left double quote
    "\u201d": '"',    # right double quote
    "\u2026": "...",  # ellipsis
    "\u2022": "*",    # bullet
    "\u2192": "->",   # right arrow
    "\u2713": "v",    # check mark
    "\u2714": "v",    # heavy check mark
    "\u26a0": "!",    # warning sign
    "\u00a0": " ",    # non-breaking space
})


def latin1(text: object) -> str:
    """Sanitize text for latin-1 PDF core fonts."""
    result = str(text).translate(_UNICODE_SUBS)
    return result.encode("latin-1", errors="replace").decode("latin-1")


def or_na(value: object) -> str:
    """Display value, or 'N/A' for empty/missing data."""
    if value is None:
        return "N/A"
    text = str(value).strip()
    return text or "N/A"


def long_date(value: date | datetime) -> str:
    """'January 5, 2025' without platform-specific strftime flags."""
    return f"{value:%B} {value.day}, {value.year}"


def format_date(value: str | None) -> str:
    """Render an ISO date string as a long date; 'N/A' when absent or unparsable."""
    if not value:
        return "N/A"
    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = datetime.fromisoformat(text[:10])
        except ValueError:
            return text
    return long_date(parsed)


def format_number(value: str | int | float | None) -> str:
    """Group the integer part with commas: '1000000.5' -> '1,000,000.5'."""
    if value is None or str(value).strip() == "":
        return "N/A"
    text = str(value).strip()
    whole, dot, frac = text.partition(".")
    if not whole.lstrip("-").isdigit():
        return text
    sign = "-" if whole.startswith("-") else ""
    return f"{sign}{int(whole.lstrip('-')):,}{dot}{frac}"


def capitalize(text: str) -> str:
    return text[:1].upper() + text[1:].lower() if text else text


def score_color(score: float) -> RGB:
    if score >= 75:
        return (34, 197, 94)
    if score >= 50:
        return (234, 179, 8)
    return (239, 68, 68)


def flag_label(present: bool, risky: bool = True) -> str:
    """'Yes'/'No' with a pass/fail marker for risk flags."""
    if not risky:
        return "Yes" if present else "No"
    return "Yes (!)" if present else "No"
