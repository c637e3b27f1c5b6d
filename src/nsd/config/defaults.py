from __future__ import annotations


DEFAULT_CONFIG: dict = {
    "dataset": {
        "root": None,
        "version": "v1.0-mini",
        "check": True,
        "max_workers": 1,
    },
    "monitoring": {
        "json_logs": False,
        "log_level": "INFO",
        "load_stats": True,
    },
}
