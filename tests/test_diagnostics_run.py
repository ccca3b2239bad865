"""Tests for the diagnostics command-line runner."""

from __future__ import annotations

from diagnostics.models import DiagnosticResult, DiagnosticStatus
from diagnostics.run import main
from diagnostics.runner import format_results, run_diagnostics


def test_offline_run_succeeds(capsys) -> None:
    assert main(["--offline"]) == 0

    output = capsys.readouterr().out
    assert "[PASS] audio_server" in output
    assert "[PASS] storage" in output


def test_run_diagnostics_reports_raising_probe() -> None:
    def broken_probe() -> DiagnosticResult:
        raise RuntimeError("boom")

    results = run_diagnostics([broken_probe])
    assert results[0].name == "broken_probe"
    assert results[0].failed
    assert "boom" in format_results(results)


def test_format_results_lists_each_probe() -> None:
    report = format_results(
        [
            DiagnosticResult(name="core", status=DiagnosticStatus.PASS, details="ok"),
            DiagnosticResult(name="services", status=DiagnosticStatus.WARN, details="disabled"),
        ]
    )
    assert "[PASS] core: ok" in report
    assert "[WARN] services: disabled" in report
