"""Error taxonomy for report generation.

Asset and data-shape problems are absorbed where they occur (negative cache
entries, documented defaults). Everything here propagates to the caller.
"""

from __future__ import annotations


class ReportError(Exception):
    """Base class for errors surfaced by the rendering engine."""


class AssetError(ReportError):
    """An asset could not be loaded. Never escapes the asset cache."""


class LayoutError(ReportError):
    """Cursor arithmetic violated the printable band (programmer error)."""


class RenderFailed(ReportError):
    """The document could not be initialised or finalised."""


class DeadlineExceeded(ReportError):
    """The render ran past its deadline; no output was produced."""
