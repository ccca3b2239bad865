"""Diagnostics routines for the cache directory."""

from __future__ import annotations

from pathlib import Path

from diagnostics.models import DiagnosticResult, DiagnosticStatus
from storage.cache import CacheConfig, CacheStore


def probe(base_dir: Path | None = None) -> DiagnosticResult:
    """Run a storage probe to validate the cache directory is writable.

    Args:
        base_dir: Optional base directory for offline testing; the cache is
            expected at ``base_dir / "cache"``.

    Returns:
        Diagnostic result indicating storage readiness.
    """

    name = "storage"
    if base_dir is None:
        from config import ConfigController

        cache_config = CacheConfig.from_config(ConfigController.get_instance().get_config())
    else:
        cache_config = CacheConfig(cache_dir=base_dir / "cache")

    store = CacheStore(cache_config)
    if not store.cache_dir.is_dir():
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Cache directory missing at {store.cache_dir}",
        )

    sentinel = store.cache_dir / f".{cache_config.prefix}.diagnostics_probe"
    try:
        sentinel.write_text("ok", encoding="utf-8")
        sentinel.unlink()
        cached = store.cached_indices()
        active = store.read_active_index()
    except OSError as exc:
        details = f"Filesystem access failed: {exc}"
        return DiagnosticResult(name=name, status=DiagnosticStatus.FAIL, details=details)
    except ValueError as exc:
        details = f"Unreadable active sink entry: {exc}"
        return DiagnosticResult(name=name, status=DiagnosticStatus.WARN, details=details)
    finally:
        sentinel.unlink(missing_ok=True)

    details = (
        f"Cache writable at {store.cache_dir} "
        f"(cached sinks: {len(cached)}, active sink: {active if active is not None else 'none'})"
    )
    return DiagnosticResult(name=name, status=DiagnosticStatus.PASS, details=details)
