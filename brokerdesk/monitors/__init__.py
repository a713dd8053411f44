from .status_monitor import StatusMonitor

__all__ = ["StatusMonitor"]
