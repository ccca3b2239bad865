"""Sink reconciliation: messages, channel, producer, engine and run loop."""

__all__ = ["DeviceSnapshot", "MessageChannel", "MonitorRunner", "ReconciliationEngine"]


def __getattr__(name: str):
    if name == "DeviceSnapshot":
        from monitor.models import DeviceSnapshot

        return DeviceSnapshot
    if name == "MessageChannel":
        from monitor.channel import MessageChannel

        return MessageChannel
    if name == "MonitorRunner":
        from monitor.runner import MonitorRunner

        return MonitorRunner
    if name == "ReconciliationEngine":
        from monitor.engine import ReconciliationEngine

        return ReconciliationEngine
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
