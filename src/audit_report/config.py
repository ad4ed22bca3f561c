"""Render settings, loadable from a YAML file."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field


class RenderSettings(BaseModel):
    # Branding
    org_name: str = "CFG Ninja"
    org_tag: str = "CFGNINJA"   # filename tag: {YYYYMMDD}_{org_tag}_{slug}_Audit.pdf

    # Asset resolution
    logo_base: str = ""         # directory or URL prefix holding {slug}.{ext} logos
    icon_dir: Path | None = None  # overrides the bundled icon set
    font_regular: str | None = None  # TTF path; core Helvetica when unset
    font_bold: str | None = None

    # Timing / concurrency
    fetch_timeout: float = Field(default=10.0, gt=0)
    prefetch_workers: int = Field(default=8, ge=1)
    batch_workers: int = Field(default=4, ge=1)
    render_timeout: float | None = Field(default=120.0, gt=0)


def load_settings(path: Path | None = None, **overrides) -> RenderSettings:
    """Build settings from an optional YAML file plus non-None overrides."""
    data: dict = {}
    if path is not None:
        loaded = yaml.safe_load(Path(path).read_text())
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        data.update(loaded)
    data.update({k: v for k, v in overrides.items() if v is not None})
    return RenderSettings.model_validate(data)
