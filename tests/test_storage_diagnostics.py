"""Tests for storage diagnostics."""

from __future__ import annotations

from diagnostics.models import DiagnosticStatus
from storage.diagnostics import probe


def test_storage_probe_offline(tmp_path) -> None:
    """Storage probe should pass when the cache directory is writable."""

    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    (cache_dir / "pamonitor.3.description").write_text("Speakers", encoding="utf-8")
    (cache_dir / "pamonitor.newest_sink_index").write_text("3", encoding="utf-8")

    result = probe(base_dir=tmp_path)
    assert result.status is DiagnosticStatus.PASS
    assert "cached sinks: 1" in result.details
    assert "active sink: 3" in result.details
    assert not list(cache_dir.glob(".*"))


def test_storage_probe_missing_cache_dir(tmp_path) -> None:
    result = probe(base_dir=tmp_path)
    assert result.status is DiagnosticStatus.FAIL


def test_storage_probe_garbled_active_index(tmp_path) -> None:
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    (cache_dir / "pamonitor.newest_sink_index").write_text("speakers", encoding="utf-8")

    result = probe(base_dir=tmp_path)
    assert result.status is DiagnosticStatus.WARN
