"""Diagnostics runner utilities."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

from core.logging import logger as LOGGER
from diagnostics.models import DiagnosticResult, DiagnosticStatus

Probe = Callable[[], DiagnosticResult]


def format_results(results: Iterable[DiagnosticResult]) -> str:
    """Return a human-friendly diagnostics report."""

    lines = ["Diagnostics report", "-" * 60]
    for result in results:
        lines.append(f"[{result.status.value}] {result.name}: {result.details}")
    lines.append("-" * 60)
    return "\n".join(lines)


def run_diagnostics(probes: Iterable[Probe]) -> list[DiagnosticResult]:
    """Run diagnostics probes and return results."""

    results: list[DiagnosticResult] = []
    for probe in probes:
        try:
            result = probe()
        except Exception as exc:  # noqa: BLE001 - diagnostics must keep running
            LOGGER.exception("Probe failed: %s", probe)
            result = DiagnosticResult(
                name=getattr(probe, "__name__", "unknown_probe"),
                status=DiagnosticStatus.FAIL,
                details=f"Probe raised exception: {exc}",
            )
        results.append(result)
    return results


def default_probes(*, offline: bool = False, base_dir: Path | None = None) -> list[Probe]:
    """Build the probe list for a live system or an offline sandbox.

    Offline probes use a fake audio server and never touch ``pactl`` or the
    user's cache directory; ``base_dir`` must then hold ``config`` and
    ``cache`` folders.
    """

    from config.diagnostics import probe as config_probe
    from core.diagnostics import probe as core_probe
    from interaction.diagnostics import probe as audio_probe
    from services.diagnostics import probe as services_probe
    from storage.diagnostics import probe as storage_probe

    if offline:
        from interaction.audio_hal import FakeAudioServer
        from services.notifier import NotifierConfig

        def audio_probe_offline() -> DiagnosticResult:
            server = FakeAudioServer()
            server.add_device("Offline speakers")
            return audio_probe(adapter=server)

        def services_probe_offline() -> DiagnosticResult:
            return services_probe(config=NotifierConfig(enabled=False))

        return [
            lambda: config_probe(base_dir=base_dir),
            core_probe,
            lambda: storage_probe(base_dir=base_dir),
            audio_probe_offline,
            services_probe_offline,
        ]

    return [
        lambda: config_probe(base_dir=base_dir),
        core_probe,
        lambda: storage_probe(base_dir=base_dir),
        audio_probe,
        services_probe,
    ]
