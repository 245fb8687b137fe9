"""Typed, frozen dataclasses for every configuration section.

This module is the **single source of truth** for default values.
JSON Schema defaults exist only for documentation; these builders
are what the application actually reads.

Access pattern::

    from warrantywatch.config import get_config

    engine = get_config().settings.engine
    print(engine.check_interval_seconds)
"""

from __future__ import annotations

from dataclasses import dataclass

from warrantywatch.core.types import GateBackend

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineSettings:
    """Expiration scan scheduling and dispatch settings."""

    enabled: bool
    check_interval_seconds: int
    initial_delay_seconds: int
    default_threshold_days: int
    expired_grace_days: int
    max_workers: int
    gate_backend: GateBackend
    stop_timeout_seconds: int


def _build_engine(data: dict | None) -> EngineSettings:
    d = data or {}
    return EngineSettings(
        enabled=d.get("enabled", True),
        check_interval_seconds=d.get("check_interval_seconds", 86400),
        initial_delay_seconds=d.get("initial_delay_seconds", 60),
        default_threshold_days=d.get("default_threshold_days", 7),
        expired_grace_days=d.get("expired_grace_days", 30),
        max_workers=d.get("max_workers", 4),
        gate_backend=GateBackend(d.get("gate_backend", "database")),
        stop_timeout_seconds=d.get("stop_timeout_seconds", 30),
    )


# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EmailSettings:
    """Email channel settings (SMTP transport)."""

    enabled: bool
    backend: str
    host: str
    port: int
    username: str
    password: str
    use_tls: bool
    from_address: str
    from_name: str
    timeout_seconds: int


def _build_email(data: dict | None) -> EmailSettings:
    d = data or {}
    return EmailSettings(
        enabled=d.get("enabled", True),
        backend=d.get("backend", "log"),
        host=d.get("host", ""),
        port=d.get("port", 587),
        username=d.get("username", ""),
        password=d.get("password", ""),
        use_tls=d.get("use_tls", True),
        from_address=d.get("from_address", ""),
        from_name=d.get("from_name", "Warranty App"),
        timeout_seconds=d.get("timeout_seconds", 30),
    )


# ---------------------------------------------------------------------------
# SMS
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SmsSettings:
    """SMS channel settings (Twilio REST transport)."""

    enabled: bool
    backend: str
    account_sid: str
    auth_token: str
    from_number: str
    api_base_url: str
    timeout_seconds: int

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)


def _build_sms(data: dict | None) -> SmsSettings:
    d = data or {}
    return SmsSettings(
        enabled=d.get("enabled", True),
        backend=d.get("backend", "log"),
        account_sid=d.get("account_sid", ""),
        auth_token=d.get("auth_token", ""),
        from_number=d.get("from_number", ""),
        api_base_url=d.get("api_base_url", "https://api.twilio.com/2010-04-01"),
        timeout_seconds=d.get("timeout_seconds", 10),
    )


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TemplateSettings:
    templates_path: str | None
    app_name: str


def _build_templates(data: dict | None) -> TemplateSettings:
    d = data or {}
    return TemplateSettings(
        templates_path=d.get("templates_path"),
        app_name=d.get("app_name", "Warranty App"),
    )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingSettings:
    """Application logging configuration (level, format)."""

    level: str
    format: str


def _build_logging(data: dict | None) -> LoggingSettings:
    d = data or {}
    return LoggingSettings(
        level=d.get("level", "INFO"),
        format=d.get("format", "json"),
    )


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    """PostgreSQL connection and pool settings."""

    host: str
    port: int
    database: str
    user: str
    password: str
    sslmode: str
    min_connections: int
    max_connections: int
    connection_timeout: float
    auto_setup: bool


def _build_database(data: dict | None) -> DatabaseSettings:
    d = data or {}
    return DatabaseSettings(
        host=d.get("host", "localhost"),
        port=d.get("port", 5432),
        database=d["database"],
        user=d["user"],
        password=d.get("password", ""),
        sslmode=d.get("sslmode", "prefer"),
        min_connections=d.get("min_connections", 1),
        max_connections=d.get("max_connections", 5),
        connection_timeout=d.get("connection_timeout", 30.0),
        auto_setup=d.get("auto_setup", False),
    )


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetricsSettings:
    enabled: bool


def _build_metrics(data: dict | None) -> MetricsSettings:
    d = data or {}
    return MetricsSettings(enabled=d.get("enabled", True))


# ---------------------------------------------------------------------------
# Root settings aggregate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WarrantyWatchSettings:
    engine: EngineSettings
    email: EmailSettings
    sms: SmsSettings
    templates: TemplateSettings
    logging: LoggingSettings
    database: DatabaseSettings
    metrics: MetricsSettings


def build_settings(data: dict) -> WarrantyWatchSettings:
    """Build the full typed settings tree from raw config data.

    Called once during :class:`WarrantyWatchConfig` initialization after
    schema validation and environment-variable resolution.
    """
    return WarrantyWatchSettings(
        engine=_build_engine(data.get("engine")),
        email=_build_email(data.get("email")),
        sms=_build_sms(data.get("sms")),
        templates=_build_templates(data.get("templates")),
        logging=_build_logging(data.get("logging")),
        database=_build_database(data.get("database")),
        metrics=_build_metrics(data.get("metrics")),
    )
