"""Process-scoped asset cache (fonts, icons, logos, diagrams).

Usage:
    cache = AssetCache(AssetLoader(timeout=5.0))
    resolver = AssetResolver(settings)
    prefetch(cache, resolver.keys_for(record), max_workers=8)
    data = cache.get(resolver.icon_key("critical"))   # bytes or None
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path

import httpx

from audit_report.config import RenderSettings
from audit_report.errors import AssetError
from audit_report.models import AuditRecord

log = logging.getLogger(__name__)

BUNDLED_ICON_DIR = Path(__file__).parent / "static" / "icons"

# Logical icon names shipped with the engine.
ICON_NAMES = (
    "critical", "high", "medium", "low", "informational",
    "pass", "fail", "pending", "resolved", "ack",
)

# Logo lookup order for {logo_base}/{slug}.{ext}.
LOGO_EXTENSIONS = ("png", "jpg", "jpeg", "webp", "svg")


# ── Loading ────────────────────────────────────────────────────────────────


class AssetLoader:
    """Fetch asset bytes from http(s) URLs, file:// URLs or filesystem paths."""

    def __init__(self, timeout: float = 10.0):
        self._timeout = timeout

    def __call__(self, key: str) -> bytes:
        if key.startswith(("http://", "https://")):
            try:
                resp = httpx.get(key, timeout=self._timeout, follow_redirects=True)
                resp.raise_for_status()
            except httpx.HTTPError as exc:
                raise AssetError(f"{key}: {exc}") from exc
            return resp.content

        path = Path(key.removeprefix("file://"))
        try:
            return path.read_bytes()
        except OSError as exc:
            raise AssetError(f"{key}: {exc.strerror or exc}") from exc


class AssetCache:
    """Memoised key -> bytes store with negative caching and single-flight loads.

    A failed load is stored as None and never retried for the lifetime of the
    cache. Concurrent misses on one key share a single loader call.
    """

    def __init__(self, loader: Callable[[str], bytes] | None = None):
        self._loader = loader or AssetLoader()
        self._entries: dict[str, bytes | None] = {}
        self._inflight: dict[str, Future] = {}
        self._lock = threading.Lock()
        self.loads = 0

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def peek(self, key: str) -> bytes | None:
        """Cached value without triggering a load (None on miss or failure)."""
        with self._lock:
            return self._entries.get(key)

    @property
    def failed_keys(self) -> list[str]:
        with self._lock:
            return sorted(k for k, v in self._entries.items() if v is None)

    def get(self, key: str, timeout: float | None = None) -> bytes | None:
        """Return the asset bytes for key, loading on first use.

        ``timeout`` only bounds the wait on another thread's in-flight load;
        an expired wait reports the asset as missing without caching that.
        """
        with self._lock:
            if key in self._entries:
                return self._entries[key]
            flight = self._inflight.get(key)
            owner = flight is None
            if owner:
                flight = Future()
                self._inflight[key] = flight
                self.loads += 1

        if not owner:
            try:
                return flight.result(timeout=timeout)
            except FutureTimeout:
                log.warning("Timed out waiting for asset %s", key)
                return None

        data: bytes | None
        try:
            data = self._loader(key)
        except Exception as exc:
            log.warning("Asset %s unavailable: %s", key, exc)
            data = None
        if data is not None and not data:
            data = None

        with self._lock:
            self._entries[key] = data
            del self._inflight[key]
        flight.set_result(data)
        return data


# ── Resolution ─────────────────────────────────────────────────────────────


class AssetResolver:
    """Map logical asset names to cache keys."""

    def __init__(self, settings: RenderSettings | None = None):
        self._settings = settings or RenderSettings()
        self._icon_dir = self._settings.icon_dir or BUNDLED_ICON_DIR

    def icon_key(self, name: str) -> str:
        if name not in ICON_NAMES:
            raise KeyError(f"unknown icon {name!r}")
        return str(self._icon_dir / f"{name}.svg")

    def logo_keys(self, slug: str) -> list[str]:
        base = self._settings.logo_base.rstrip("/")
        if not base or not slug:
            return []
        return [f"{base}/{slug}.{ext}" for ext in LOGO_EXTENSIONS]

    def font_keys(self) -> dict[str, str]:
        fonts = {}
        if self._settings.font_regular:
            fonts[""] = self._settings.font_regular
        if self._settings.font_bold:
            fonts["B"] = self._settings.font_bold
        return fonts

    def diagram_keys(self, record: AuditRecord) -> dict[str, str]:
        d = record.diagrams
        keys = {}
        if d.is_graph and d.graph_url:
            keys["graph"] = d.graph_url
        if d.is_inheritance and d.inheritance_url:
            keys["inheritance"] = d.inheritance_url
        return keys

    def keys_for(self, record: AuditRecord) -> list[str]:
        """Every key the render of ``record`` may ask for, in a stable order."""
        keys = list(self.font_keys().values())
        keys.extend(self.icon_key(name) for name in ICON_NAMES)
        keys.extend(self.logo_keys(record.slug))
        keys.extend(self.diagram_keys(record).values())
        return list(dict.fromkeys(keys))

    def logo(self, cache: AssetCache, slug: str) -> bytes | None:
        """First logo found in extension order, or None."""
        for key in self.logo_keys(slug):
            data = cache.get(key, timeout=0)
            if data:
                return data
        return None


# ── Prefetch ───────────────────────────────────────────────────────────────


def prefetch(
    cache: AssetCache,
    keys: Iterable[str],
    *,
    max_workers: int = 8,
    deadline: float | None = None,
) -> int:
    """Resolve keys concurrently before layout starts.

    Returns the number of keys that resolved to bytes. Keys still loading when
    ``deadline`` (a time.monotonic() value) passes are left to finish in the
    background; the render treats them as missing.
    """
    pending = [k for k in dict.fromkeys(keys) if k not in cache]
    if not pending:
        return 0

    pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="asset-prefetch")
    try:
        futures = [pool.submit(cache.get, key) for key in pending]
        timeout = None if deadline is None else max(0.0, deadline - time.monotonic())
        done, not_done = wait(futures, timeout=timeout)
        if not_done:
            log.warning("Prefetch deadline reached with %d asset(s) outstanding", len(not_done))
    finally:
        pool.shutdown(wait=False, cancel_futures=True)

    resolved = sum(1 for f in done if f.result() is not None)
    log.info("Prefetched %d/%d asset(s)", resolved, len(pending))
    return resolved
