"""Flat-file cache of sink attributes read by external status bar scripts."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.logging import logger as LOGGER
from monitor.models import DeviceSnapshot


DEVICE_ATTRIBUTES = ("mute", "volume", "description")
ACTIVE_INDEX_KEY = "newest_sink_index"


@dataclass(frozen=True)
class CacheConfig:
    """Location and naming of cache files."""

    cache_dir: Path
    prefix: str = "pamonitor"

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "CacheConfig":
        cache_cfg = config.get("cache") or {}
        return cls(
            cache_dir=Path(cache_cfg["dir"]).expanduser(),
            prefix=str(cache_cfg.get("prefix", "pamonitor")),
        )


class CacheStore:
    """Read and write one file per ``(sink index, attribute)`` pair.

    Write and delete failures raise ``OSError``; the directory is never
    created here, a missing directory means the environment is unusable.
    """

    def __init__(self, config: CacheConfig) -> None:
        self.config = config

    @property
    def cache_dir(self) -> Path:
        return self.config.cache_dir

    def device_path(self, index: int, attribute: str) -> Path:
        return self.config.cache_dir / f"{self.config.prefix}.{index}.{attribute}"

    def active_index_path(self) -> Path:
        return self.config.cache_dir / f"{self.config.prefix}.{ACTIVE_INDEX_KEY}"

    def write(self, index: int, attribute: str, value: str) -> None:
        self.device_path(index, attribute).write_bytes(value.encode("utf-8"))

    def delete(self, index: int, attribute: str) -> None:
        self.device_path(index, attribute).unlink()

    def write_device(self, snapshot: DeviceSnapshot) -> None:
        self.write(snapshot.index, "mute", "true" if snapshot.muted else "false")
        self.write(snapshot.index, "volume", str(snapshot.volume))
        self.write(snapshot.index, "description", snapshot.description)
        LOGGER.debug("Cached sink %s", snapshot.index)

    def delete_device(self, index: int) -> None:
        for attribute in DEVICE_ATTRIBUTES:
            self.delete(index, attribute)
        LOGGER.debug("Removed cached sink %s", index)

    def write_active_index(self, index: int) -> None:
        self.active_index_path().write_bytes(str(index).encode("utf-8"))

    def read_device(self, index: int) -> DeviceSnapshot:
        """Load a cached sink back into a snapshot."""

        mute = self._read(index, "mute")
        if mute not in {"true", "false"}:
            raise ValueError(f"Unexpected cached mute value for sink {index}: {mute!r}")
        return DeviceSnapshot(
            index=index,
            muted=mute == "true",
            volume=int(self._read(index, "volume")),
            description=self._read(index, "description"),
        )

    def read_active_index(self) -> int | None:
        path = self.active_index_path()
        if not path.exists():
            return None
        return int(path.read_text(encoding="utf-8").strip())

    def cached_indices(self) -> list[int]:
        """Return every sink index that has at least one cached attribute."""

        indices: set[int] = set()
        for path in self.config.cache_dir.glob(f"{self.config.prefix}.*.*"):
            _prefix, index, _attribute = path.name.rsplit(".", 2)
            if index.isdigit():
                indices.add(int(index))
        return sorted(indices)

    def _read(self, index: int, attribute: str) -> str:
        return self.device_path(index, attribute).read_bytes().decode("utf-8")
