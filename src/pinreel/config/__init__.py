from .config import (
    KNOWN_STRATEGIES,
    Config,
    DownloadConfig,
    ExtractionSettings,
    FetchConfig,
    MonitoringConfig,
    QualityOption,
    ServerConfig,
    find_config_file,
    load_config,
)

__all__ = [
    "KNOWN_STRATEGIES",
    "Config",
    "DownloadConfig",
    "ExtractionSettings",
    "FetchConfig",
    "MonitoringConfig",
    "QualityOption",
    "ServerConfig",
    "find_config_file",
    "load_config",
]
