"""Paginated PDF rendering engine for smart-contract audit records."""

__version__ = "0.3.0"
