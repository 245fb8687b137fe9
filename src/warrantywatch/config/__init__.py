"""Configuration subsystem for WarrantyWatch.

Public API::

    from warrantywatch.config import get_config, WarrantyWatchConfig

    # At startup (CLI only):
    WarrantyWatchConfig(config_file="config.yaml", schema_file="bundled")

    # Everywhere else:
    cfg = get_config()
    interval = cfg.settings.engine.check_interval_seconds  # typed access
    host = cfg.get("email.host")                           # dynamic dot-path
"""

from warrantywatch.config.settings import (
    DatabaseSettings,
    EmailSettings,
    EngineSettings,
    LoggingSettings,
    MetricsSettings,
    SmsSettings,
    TemplateSettings,
    WarrantyWatchSettings,
    build_settings,
)
from warrantywatch.config.warranty_config import (
    ConfigValidationError,
    WarrantyWatchConfig,
    get_config,
)

__all__ = [
    "ConfigValidationError",
    "DatabaseSettings",
    "EmailSettings",
    "EngineSettings",
    "LoggingSettings",
    "MetricsSettings",
    "SmsSettings",
    "TemplateSettings",
    "WarrantyWatchConfig",
    "WarrantyWatchSettings",
    "build_settings",
    "get_config",
]
