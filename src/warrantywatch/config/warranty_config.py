"""WarrantyWatch configuration loader built on ConfigKit.

Lifecycle::

    # 1. CLI creates the singleton (once, at startup)
    WarrantyWatchConfig(
        config_file="/etc/warrantywatch/config.yaml",
        schema_file="bundled",
    )

    # 2. Any module retrieves it afterwards
    from warrantywatch.config import get_config
    cfg = get_config()
    cfg.settings.engine.check_interval_seconds  # typed access

    # 3. Extension / dynamic access
    cfg.get("email.host", default="localhost")
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

from configkit import ConfigKit, ConfigKitMeta

from warrantywatch.config.settings import WarrantyWatchSettings, build_settings

_SCHEMA_PATH = Path(__file__).parent / "schema.json"

_ENV_RE = re.compile(
    r"^\$\{([^}:]+?)(?::-(.*))?\}$",
    re.DOTALL,
)

_BUILTIN_EMAIL_BACKENDS = frozenset({"smtp", "log"})
_BUILTIN_SMS_BACKENDS = frozenset({"twilio", "log"})

_CLASS_PATH_RE = re.compile(
    r"^[a-zA-Z_][a-zA-Z0-9_]*(\.[a-zA-Z_][a-zA-Z0-9_]*)+$",
)

_MIN_INTERVAL_SECONDS = 60

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level singleton reference
# ---------------------------------------------------------------------------
_instance: WarrantyWatchConfig | None = None


def get_config() -> WarrantyWatchConfig:
    """Return the initialised configuration singleton.

    Raises :class:`RuntimeError` if :class:`WarrantyWatchConfig` has not
    been created yet (i.e. the CLI entry point has not run).
    """
    if _instance is None:
        msg = (
            "Configuration not initialised. "
            "WarrantyWatchConfig must be created with config_file= before calling get_config()."
        )
        raise RuntimeError(msg)
    return _instance


# ---------------------------------------------------------------------------
# Validation error collector
# ---------------------------------------------------------------------------


class ConfigValidationError(Exception):
    """Raised when cross-field validation finds one or more problems."""

    def __init__(self, errors: list[str]) -> None:
        """Store *errors* and build a human-readable message."""
        self.errors = errors
        body = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"Configuration validation failed:\n{body}")


# ---------------------------------------------------------------------------
# Environment variable resolution
# ---------------------------------------------------------------------------


def _resolve_value(value: str, path: str) -> str:
    """Replace ``${VAR}`` or ``${VAR:-default}`` with env var value."""
    match = _ENV_RE.match(value)
    if match is None:
        return value
    var_name = match.group(1)
    fallback = match.group(2)
    resolved = os.environ.get(var_name)
    if resolved is not None:
        return resolved
    if fallback is not None:
        return fallback
    raise ConfigValidationError(
        [
            f"Environment variable '${{{var_name}}}' referenced "
            f"at '{path}' is not set and has no default",
        ],
    )


def _resolve_env_vars(
    data: Any,  # noqa: ANN401
    path: str = "",
) -> None:
    """Walk *data* in-place and resolve ``${VAR}``/``${VAR:-default}`` strings."""
    if isinstance(data, dict):
        for key in data:
            child_path = f"{path}.{key}" if path else key
            if isinstance(data[key], str):
                data[key] = _resolve_value(data[key], child_path)
            elif isinstance(data[key], (dict, list)):
                _resolve_env_vars(data[key], child_path)
    elif isinstance(data, list):
        for idx, item in enumerate(data):
            child_path = f"{path}[{idx}]"
            if isinstance(item, str):
                data[idx] = _resolve_value(item, child_path)
            elif isinstance(item, (dict, list)):
                _resolve_env_vars(item, child_path)


def _check_backend(section: str, backend: str, builtins: frozenset[str], errors: list[str]) -> None:
    if backend in builtins:
        return
    if backend.startswith("ext:"):
        if not _CLASS_PATH_RE.match(backend[4:]):
            errors.append(
                f"{section}.backend '{backend}' is not a valid fully qualified "
                "Python class path (expected 'ext:package.module.ClassName')",
            )
        return
    errors.append(
        f"{section}.backend contains unknown backend '{backend}'. "
        f"Known backends: {sorted(builtins)}. "
        "Use 'ext:fully.qualified.Class' for custom transports.",
    )


# ---------------------------------------------------------------------------
# Config class
# ---------------------------------------------------------------------------


class WarrantyWatchConfig(ConfigKit):
    """Central configuration for the notification engine.

    Subclasses :class:`configkit.ConfigKit`.  The JSON schema is
    bundled at ``config/schema.json``; users supply only ``config_file``.

    After construction the typed settings tree is available at
    :pyattr:`settings` and the raw dict via :pyattr:`data` /
    :pymeth:`get`.
    """

    def __init__(
        self,
        *,
        config_file: str | Path,
        schema_file: str | Path | None = None,  # noqa: ARG002
    ) -> None:
        """Initialise the configuration singleton.

        Parameters
        ----------
        config_file:
            Path to the YAML/JSON configuration file.
        schema_file:
            Ignored.  Exists only to satisfy the
            :class:`ConfigKitMeta` singleton guard.

        """
        global _instance  # noqa: PLW0603

        super().__init__(
            config_file=config_file,
            schema_file=_SCHEMA_PATH,
        )

        self._settings: WarrantyWatchSettings = build_settings(self.data)
        _instance = self

    # -- lifecycle overrides ------------------------------------------------

    def _load(self) -> None:
        """Load config file then resolve ``${VAR}`` env-var references.

        Runs env-var resolution **before** schema validation so that
        substituted values (e.g. ``${LOG_LEVEL:-INFO}``) are checked
        against enum constraints in the schema.
        """
        super()._load()
        _resolve_env_vars(self._data)  # noqa: SLF001

    # -- typed access -------------------------------------------------------

    @property
    def settings(self) -> WarrantyWatchSettings:
        """Fully-typed, frozen settings tree."""
        return self._settings

    # -- cross-field validation ---------------------------------------------

    def additional_checks(self) -> None:  # noqa: C901, PLR0912
        """Semantic & cross-field validation.

        Called automatically by ConfigKit **after** schema validation
        passes.
        """
        errors: list[str] = []
        warnings: list[str] = []

        engine = self.data.get("engine") or {}
        email = self.data.get("email") or {}
        sms = self.data.get("sms") or {}

        # -- engine --
        interval = engine.get("check_interval_seconds", 86400)
        if interval < _MIN_INTERVAL_SECONDS:
            errors.append(
                f"engine.check_interval_seconds ({interval}) must be >= "
                f"{_MIN_INTERVAL_SECONDS}",
            )
        threshold = engine.get("default_threshold_days", 7)
        if threshold < 0:
            errors.append(
                f"engine.default_threshold_days ({threshold}) must not be negative",
            )
        if engine.get("gate_backend", "database") == "memory":
            warnings.append(
                "engine.gate_backend is 'memory': a restart within the same "
                "day may re-send notifications already delivered that day",
            )

        # -- email --
        email_backend = email.get("backend", "log")
        _check_backend("email", email_backend, _BUILTIN_EMAIL_BACKENDS, errors)
        if email.get("enabled", True) and email_backend == "smtp":
            if not email.get("host"):
                errors.append("email.host is required when email.backend is 'smtp'")
            if not email.get("from_address"):
                errors.append(
                    "email.from_address is required when email.backend is 'smtp'",
                )

        # -- sms --
        sms_backend = sms.get("backend", "log")
        _check_backend("sms", sms_backend, _BUILTIN_SMS_BACKENDS, errors)
        if sms.get("enabled", True) and sms_backend == "twilio":
            for key in ("account_sid", "auth_token", "from_number"):
                if not sms.get(key):
                    errors.append(f"sms.{key} is required when sms.backend is 'twilio'")

        # -- warnings (logged, not fatal) --
        if not email.get("enabled", True) and not sms.get("enabled", True):
            warnings.append(
                "email.enabled and sms.enabled are both false, so "
                "no notification will ever be delivered",
            )
        if email_backend == "log" and sms_backend == "log":
            warnings.append(
                "email and sms both use the 'log' backend, so notifications "
                "are written to the log only",
            )

        for w in warnings:
            log.warning("Config warning: %s", w)

        if errors:
            raise ConfigValidationError(errors)

    # -- helpers ------------------------------------------------------------

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton -- testing only."""
        global _instance  # noqa: PLW0603
        _instance = None
        ConfigKitMeta.reset()

    def __repr__(self) -> str:
        """Return a developer-friendly representation."""
        source = self.data.get("_source", "?")
        return f"<WarrantyWatchConfig config_file={source}>"
