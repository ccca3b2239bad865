"""Diagnostics routines for the notification service."""

from __future__ import annotations

import shlex
import shutil

from diagnostics.models import DiagnosticResult, DiagnosticStatus
from services.notifier import NotifierConfig


def probe(config: NotifierConfig | None = None) -> DiagnosticResult:
    """Check that the notifier executable can be found.

    Args:
        config: Optional notifier settings; loaded from configuration if omitted.

    Returns:
        Diagnostic result indicating notifier readiness.
    """

    name = "services"
    if config is None:
        from config import ConfigController

        config = NotifierConfig.from_config(ConfigController.get_instance().get_config())

    if not config.enabled:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.WARN,
            details="Desktop notifications are disabled",
        )

    parts = shlex.split(config.command)
    if not parts:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details="Notifier command is empty",
        )

    resolved = shutil.which(parts[0])
    if resolved is None:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.WARN,
            details=f"Notifier {parts[0]} not found; notifications will be skipped",
        )

    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=f"Notifier: {resolved}",
    )
