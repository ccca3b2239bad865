"""Storage package utilities."""

__all__ = ["CacheConfig", "CacheStore", "probe"]


def __getattr__(name: str):
    if name == "CacheConfig":
        from storage.cache import CacheConfig

        return CacheConfig
    if name == "CacheStore":
        from storage.cache import CacheStore

        return CacheStore
    if name == "probe":
        from storage.diagnostics import probe

        return probe
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
