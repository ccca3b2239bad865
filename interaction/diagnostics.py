"""Diagnostics routines for the audio server connection."""

from __future__ import annotations

import shlex
import shutil
import time

from config import ConfigController
from core.logging import logger
from diagnostics.models import DiagnosticResult, DiagnosticStatus
from interaction.audio_hal import AudioServerAdapter, DeviceInfo, ListResult, ListResultKind


def probe(adapter: AudioServerAdapter | None = None, timeout_s: float = 5.0) -> DiagnosticResult:
    """Connect to the audio server and enumerate its sinks.

    Args:
        adapter: Optional adapter (e.g. a fake) for offline testing.
        timeout_s: How long to wait for the connection and the listing.

    Returns:
        Diagnostic result indicating audio server readiness.
    """

    name = "audio_server"

    if adapter is None:
        from interaction.pactl import PactlAdapter

        config = ConfigController.get_instance().get_config()
        command = (config.get("adapter") or {}).get("pactl_command", "pactl")
        executable = shlex.split(command)[0]
        if shutil.which(executable) is None:
            return DiagnosticResult(
                name=name,
                status=DiagnosticStatus.FAIL,
                details=f"{executable} is not installed",
            )
        adapter = PactlAdapter.from_config(config)

    results: list[ListResult[DeviceInfo]] = []
    try:
        adapter.connect()
        deadline = time.monotonic() + timeout_s
        while not adapter.is_ready():
            if time.monotonic() > deadline:
                return DiagnosticResult(
                    name=name,
                    status=DiagnosticStatus.FAIL,
                    details=f"Audio server not ready after {timeout_s:.1f}s",
                )
            adapter.poll()
            time.sleep(0.05)

        adapter.enumerate_devices(results.append)
        while not any(result.kind is not ListResultKind.ITEM for result in results):
            if time.monotonic() > deadline:
                return DiagnosticResult(
                    name=name,
                    status=DiagnosticStatus.FAIL,
                    details="Sink listing did not complete",
                )
            adapter.poll()
            time.sleep(0.01)
    except Exception as exc:  # noqa: BLE001 - probe should not raise
        logger.exception("Audio server probe failed")
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Audio server probe failed: {exc}",
        )
    finally:
        adapter.close()

    if results[-1].kind is ListResultKind.ERROR:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Sink listing failed: {results[-1].error}",
        )

    devices = [result.item for result in results if result.kind is ListResultKind.ITEM]
    if not devices:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.WARN,
            details="Connected, but no sinks are available",
        )

    missing = [str(device.index) for device in devices if device.description is None]
    if missing:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Sinks without a description: {', '.join(missing)}",
        )

    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details="Sinks: " + ", ".join(f"#{device.index} {device.description}" for device in devices),
    )
