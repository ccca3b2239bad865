"""Desktop notifications for sink and volume changes via dunstify."""

from __future__ import annotations

from dataclasses import dataclass
import shlex
import subprocess
from typing import Any, Callable, Sequence

from core.logging import logger as LOGGER
from monitor.models import DeviceSnapshot


CommandRunner = Callable[[Sequence[str]], int]


def run_command(args: Sequence[str]) -> int:
    result = subprocess.run(
        list(args),
        check=False,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )
    return result.returncode


@dataclass(frozen=True)
class NotifierConfig:
    """Notifier command and presentation settings."""

    enabled: bool = True
    command: str = "dunstify"
    device_stack_tag: str = "change_sink"
    volume_stack_tag: str = "change_volume"
    device_timeout_ms: int = 2000
    volume_timeout_ms: int = 1000
    icon_muted: str = "notification-audio-volume-muted"
    icon_unmuted: str = "notification-audio-volume-high"

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "NotifierConfig":
        notifier_cfg = config.get("notifier") or {}
        defaults = cls()
        return cls(
            enabled=bool(notifier_cfg.get("enabled", defaults.enabled)),
            command=str(notifier_cfg.get("command", defaults.command)),
            device_stack_tag=str(notifier_cfg.get("device_stack_tag", defaults.device_stack_tag)),
            volume_stack_tag=str(notifier_cfg.get("volume_stack_tag", defaults.volume_stack_tag)),
            device_timeout_ms=int(
                notifier_cfg.get("device_timeout_ms", defaults.device_timeout_ms)
            ),
            volume_timeout_ms=int(
                notifier_cfg.get("volume_timeout_ms", defaults.volume_timeout_ms)
            ),
            icon_muted=str(notifier_cfg.get("icon_muted", defaults.icon_muted)),
            icon_unmuted=str(notifier_cfg.get("icon_unmuted", defaults.icon_unmuted)),
        )


class DesktopNotifier:
    """Best-effort notifier; failures are logged and never raised."""

    def __init__(
        self,
        config: NotifierConfig | None = None,
        runner: CommandRunner = run_command,
    ) -> None:
        self.config = config or NotifierConfig()
        self._runner = runner

    def device_args(self, snapshot: DeviceSnapshot) -> list[str]:
        return [
            *shlex.split(self.config.command),
            "--hints",
            f"string:x-dunst-stack-tag:{self.config.device_stack_tag}",
            "--timeout",
            str(self.config.device_timeout_ms),
            "New sink",
            snapshot.description,
        ]

    def volume_args(self, snapshot: DeviceSnapshot) -> list[str]:
        icon = self.config.icon_muted if snapshot.muted else self.config.icon_unmuted
        return [
            *shlex.split(self.config.command),
            "--hints",
            f"int:value:{snapshot.volume}",
            "--hints",
            f"string:x-dunst-stack-tag:{self.config.volume_stack_tag}",
            "--timeout",
            str(self.config.volume_timeout_ms),
            "--icon",
            icon,
            "Volume",
        ]

    def notify_device(self, snapshot: DeviceSnapshot) -> bool:
        return self._notify(self.device_args(snapshot), "sink change")

    def notify_volume(self, snapshot: DeviceSnapshot) -> bool:
        return self._notify(self.volume_args(snapshot), "volume change")

    def _notify(self, args: list[str], what: str) -> bool:
        if not self.config.enabled:
            return False
        try:
            returncode = self._runner(args)
        except OSError as exc:
            LOGGER.error("Failed to run %s to notify %s: %s", args[0], what, exc)
            return False
        if returncode != 0:
            LOGGER.warning("Failed to notify %s (exit status %s)", what, returncode)
            return False
        return True
