"""Per-render inputs handed to every section renderer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from audit_report.assets import AssetCache, AssetResolver
from audit_report.config import RenderSettings
from audit_report.models import AuditRecord


@dataclass(frozen=True)
class RenderContext:
    record: AuditRecord
    settings: RenderSettings
    cache: AssetCache
    resolver: AssetResolver
    generated: date

    def icon(self, name: str) -> bytes | None:
        # timeout=0: an icon still loading elsewhere is treated as missing
        return self.cache.get(self.resolver.icon_key(name), timeout=0)

    def logo(self) -> bytes | None:
        return self.resolver.logo(self.cache, self.record.slug)

    def diagram(self, kind: str) -> bytes | None:
        key = self.resolver.diagram_keys(self.record).get(kind)
        if key is None:
            return None
        return self.cache.get(key, timeout=0)
