from nsd.config.loader import load_loader_config, loader_config_to_dict
from nsd.config.models import DatasetConfig, LoaderConfig, MonitoringConfig

__all__ = [
    "DatasetConfig",
    "LoaderConfig",
    "MonitoringConfig",
    "load_loader_config",
    "loader_config_to_dict",
]
