"""Tests for services diagnostics."""

from __future__ import annotations

import sys

from diagnostics.models import DiagnosticStatus
from services.diagnostics import probe
from services.notifier import NotifierConfig


def test_services_probe_finds_notifier() -> None:
    """Services probe should pass when the notifier executable resolves."""

    result = probe(config=NotifierConfig(command=sys.executable))
    assert result.status is DiagnosticStatus.PASS


def test_services_probe_warns_when_missing(tmp_path) -> None:
    result = probe(config=NotifierConfig(command=str(tmp_path / "no-such-dunstify")))
    assert result.status is DiagnosticStatus.WARN


def test_services_probe_warns_when_disabled() -> None:
    result = probe(config=NotifierConfig(enabled=False))
    assert result.status is DiagnosticStatus.WARN
