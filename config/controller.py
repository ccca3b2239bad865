"""Configuration controller for YAML-based settings."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any

import yaml


CONFIG_DIR_ENV = "PAMONITOR_CONFIG_DIR"


@dataclass(frozen=True)
class ConfigPaths:
    """Filesystem paths for configuration files."""

    config_dir: Path
    config_file: Path
    override_file: Path


def default_config_dir() -> Path:
    """Return the configuration directory, honouring the environment override."""

    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path(__file__).resolve().parent


def default_cache_dir() -> Path:
    """Return the cache directory shared with the status bar scripts."""

    cache_home = os.environ.get("XDG_CACHE_HOME")
    base = Path(cache_home) if cache_home else Path.home() / ".cache"
    return base / "bin"


class ConfigController:
    """Singleton controller for loading and updating configuration."""

    _instance: "ConfigController | None" = None

    def __init__(self, config_file: str = "default.yaml") -> None:
        if ConfigController._instance is not None:
            raise RuntimeError("You cannot create another ConfigController class")

        config_dir = default_config_dir()
        self.paths = ConfigPaths(
            config_dir=config_dir,
            config_file=config_dir / config_file,
            override_file=config_dir / "override.yaml",
        )
        self.config: dict[str, Any] = {}
        self.load_config()

    @classmethod
    def get_instance(cls) -> "ConfigController":
        """Return the singleton instance of the controller."""

        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def load_config(self) -> None:
        """Load configuration from default and override YAML files."""

        with self.paths.config_file.open("r", encoding="utf-8") as file:
            config = yaml.safe_load(file) or {}

        if self.paths.override_file.exists():
            with self.paths.override_file.open("r", encoding="utf-8") as file:
                override_config = yaml.safe_load(file) or {}
            if override_config:
                config = self._deep_merge(config, override_config)

        self.config = self._apply_defaults(config)

    def save_config(self, config: dict[str, Any]) -> None:
        """Persist configuration to override.yaml, archiving previous overrides."""

        if self.paths.override_file.exists():
            archive_index = 1
            archive_file = self._archive_path(archive_index)
            while archive_file.exists():
                archive_index += 1
                archive_file = self._archive_path(archive_index)
            self.paths.override_file.rename(archive_file)

        with self.paths.override_file.open("w", encoding="utf-8") as file:
            yaml.safe_dump(config, file)

    def get_config(self) -> dict[str, Any]:
        """Return the currently loaded configuration."""

        return dict(self.config)

    def set_config(self, config: dict[str, Any]) -> None:
        """Set and persist configuration values."""

        self.config = dict(config)
        self.save_config(self.config)

    def _archive_path(self, index: int) -> Path:
        """Return the archive path for a given override index."""

        filename = f"override_{index:04d}.yaml"
        return self.paths.config_dir / filename

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge dictionaries, overriding base values with override values."""

        merged = dict(base)
        for key, value in override.items():
            if (
                key in merged
                and isinstance(merged[key], dict)
                and isinstance(value, dict)
            ):
                merged[key] = self._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _apply_defaults(self, config: dict[str, Any]) -> dict[str, Any]:
        """Fill in every section the monitor reads so callers never see missing keys."""

        normalized = dict(config)
        normalized["logging_level"] = str(normalized.get("logging_level", "INFO")).upper()
        normalized["file_logging_enabled"] = bool(normalized.get("file_logging_enabled", False))
        normalized["log_file"] = str(
            normalized.get("log_file", "~/.local/state/pamonitor/pamonitor.log")
        )

        cache_cfg = dict(normalized.get("cache") or {})
        cache_dir = cache_cfg.get("dir")
        cache_cfg["dir"] = str(Path(cache_dir).expanduser() if cache_dir else default_cache_dir())
        cache_cfg["prefix"] = str(cache_cfg.get("prefix", "pamonitor"))
        normalized["cache"] = cache_cfg

        notifier_cfg = dict(normalized.get("notifier") or {})
        notifier_cfg["enabled"] = bool(notifier_cfg.get("enabled", True))
        notifier_cfg["command"] = str(notifier_cfg.get("command", "dunstify"))
        notifier_cfg["device_stack_tag"] = str(notifier_cfg.get("device_stack_tag", "change_sink"))
        notifier_cfg["volume_stack_tag"] = str(
            notifier_cfg.get("volume_stack_tag", "change_volume")
        )
        notifier_cfg["device_timeout_ms"] = int(notifier_cfg.get("device_timeout_ms", 2000))
        notifier_cfg["volume_timeout_ms"] = int(notifier_cfg.get("volume_timeout_ms", 1000))
        notifier_cfg["icon_muted"] = str(
            notifier_cfg.get("icon_muted", "notification-audio-volume-muted")
        )
        notifier_cfg["icon_unmuted"] = str(
            notifier_cfg.get("icon_unmuted", "notification-audio-volume-high")
        )
        normalized["notifier"] = notifier_cfg

        adapter_cfg = dict(normalized.get("adapter") or {})
        adapter_cfg["pactl_command"] = str(adapter_cfg.get("pactl_command", "pactl"))
        adapter_cfg["client_name"] = str(adapter_cfg.get("client_name", "PAMonitor"))
        adapter_cfg["poll_interval_s"] = max(0.0, float(adapter_cfg.get("poll_interval_s", 0.05)))
        connect_timeout = adapter_cfg.get("connect_timeout_s", 10.0)
        adapter_cfg["connect_timeout_s"] = (
            float(connect_timeout) if connect_timeout is not None else None
        )
        normalized["adapter"] = adapter_cfg
        return normalized
