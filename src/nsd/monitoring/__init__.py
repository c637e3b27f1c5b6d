from nsd.monitoring.logging import JsonFormatter, configure_logging
from nsd.monitoring.stats import LoadSnapshot, LoadStats

__all__ = [
    "JsonFormatter",
    "LoadSnapshot",
    "LoadStats",
    "configure_logging",
]
