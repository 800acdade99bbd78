# eol_exporter/config.py
from __future__ import annotations
import math
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Iterable, Mapping, Optional, Tuple
from botocore.config import Config #type: ignore

from core.errors import ConfigError

__version__ = "1.0.0"

# ---- Env helpers
# Absent (or blank) variables fall back to the default; malformed ones raise ConfigError.

Env = Mapping[str, str]


def _raw(env: Env, key: str) -> Optional[str]:
    v = env.get(key)
    if v is None or not v.strip():
        return None
    return v.strip()

def _env_str(env: Env, key: str, default: str) -> str:
    v = _raw(env, key)
    return v if v is not None else default

def _env_int(env: Env, key: str, default: int) -> int:
    v = _raw(env, key)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        raise ConfigError(key, v, "expected an integer") from None

def _env_float(env: Env, key: str, default: float) -> float:
    v = _raw(env, key)
    if v is None:
        return default
    try:
        f = float(v)
    except ValueError:
        raise ConfigError(key, v, "expected a number") from None
    if not math.isfinite(f):
        raise ConfigError(key, v, "expected a finite number")
    return f

def _hours(key: str, hours: float) -> timedelta:
    try:
        return timedelta(hours=hours)
    except OverflowError:
        raise ConfigError(key, hours, "window too large") from None

def _env_list(env: Env, key: str, default: Iterable[str]) -> list[str]:
    v = _raw(env, key)
    return [s.strip() for s in v.split(",") if s.strip()] if v else list(default)

def _env_choice(env: Env, key: str, default: str, choices: Iterable[str]) -> str:
    v = _env_str(env, key, default).lower()
    allowed = tuple(choices)
    if v not in allowed:
        raise ConfigError(key, v, f"expected one of {', '.join(allowed)}")
    return v

# ---- SDK config
SDK_CONFIG = Config(
    retries={"max_attempts": 10, "mode": "standard"},
    connect_timeout=5, read_timeout=60,
    user_agent_extra=f"rds-eol-exporter/{__version__}",
)

# ------------------------------------------------------------
# DEFAULTS
# Each one can be overridden by the env var named in load_settings().
# ------------------------------------------------------------

DEFAULT_REFRESH_INTERVAL_SECONDS = 300
DEFAULT_ALERT_WINDOW_HOURS = 2160     # 90 days
DEFAULT_WARNING_WINDOW_HOURS = 4320   # 180 days
DEFAULT_REFERENCE_FILE = "rds_eol_reference.csv"
DEFAULT_METRICS_PORT = 8080

MATCH_STRATEGIES = ("last", "first")
INVENTORY_SCOPES = ("clusters", "instances")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    refresh_interval_seconds: int = DEFAULT_REFRESH_INTERVAL_SECONDS
    alert_window: timedelta = timedelta(hours=DEFAULT_ALERT_WINDOW_HOURS)
    warning_window: timedelta = timedelta(hours=DEFAULT_WARNING_WINDOW_HOURS)
    reference_file: str = DEFAULT_REFERENCE_FILE
    reference_delimiter: str = ","
    match_strategy: str = "last"
    inventory_scope: Tuple[str, ...] = INVENTORY_SCOPES
    region: Optional[str] = None
    metrics_port: int = DEFAULT_METRICS_PORT
    metrics_addr: str = "0.0.0.0"
    log_level: str = "INFO"
    log_file: Optional[str] = None


def load_settings(environ: Optional[Env] = None) -> Settings:
    """Build Settings from the environment; raises ConfigError on malformed values."""
    env: Env = os.environ if environ is None else environ

    # AWS_API_INTERVAL is the exporter's historical name for the interval
    interval_key = "REFRESH_INTERVAL_SECONDS"
    if _raw(env, interval_key) is None and _raw(env, "AWS_API_INTERVAL") is not None:
        interval_key = "AWS_API_INTERVAL"
    interval = _env_int(env, interval_key, DEFAULT_REFRESH_INTERVAL_SECONDS)
    if interval <= 0:
        raise ConfigError(interval_key, interval, "must be greater than zero")

    alert_hours = _env_float(env, "ALERT_WINDOW_HOURS", DEFAULT_ALERT_WINDOW_HOURS)
    warning_hours = _env_float(env, "WARNING_WINDOW_HOURS", DEFAULT_WARNING_WINDOW_HOURS)
    if alert_hours < 0:
        raise ConfigError("ALERT_WINDOW_HOURS", alert_hours, "must not be negative")
    if warning_hours < alert_hours:
        raise ConfigError("WARNING_WINDOW_HOURS", warning_hours,
                          f"must be >= ALERT_WINDOW_HOURS ({alert_hours:g})")
    alert_window = _hours("ALERT_WINDOW_HOURS", alert_hours)
    warning_window = _hours("WARNING_WINDOW_HOURS", warning_hours)

    delimiter = env.get("EOL_REFERENCE_DELIMITER") or ","
    if delimiter == "\\t":
        delimiter = "\t"
    if len(delimiter) != 1:
        raise ConfigError("EOL_REFERENCE_DELIMITER", delimiter, "expected a single character")

    scope = tuple(s.lower() for s in _env_list(env, "EOL_INVENTORY_SCOPE", INVENTORY_SCOPES))
    unknown = [s for s in scope if s not in INVENTORY_SCOPES]
    if unknown or not scope:
        raise ConfigError("EOL_INVENTORY_SCOPE", ",".join(scope),
                          f"expected a subset of {', '.join(INVENTORY_SCOPES)}")

    port = _env_int(env, "METRICS_PORT", DEFAULT_METRICS_PORT)
    if not 0 < port < 65536:
        raise ConfigError("METRICS_PORT", port, "expected 1..65535")

    log_level = _env_str(env, "LOG_LEVEL", "INFO").upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError("LOG_LEVEL", log_level, f"expected one of {', '.join(LOG_LEVELS)}")

    return Settings(
        refresh_interval_seconds=interval,
        alert_window=alert_window,
        warning_window=warning_window,
        reference_file=_env_str(env, "EOL_REFERENCE_FILE", DEFAULT_REFERENCE_FILE),
        reference_delimiter=delimiter,
        match_strategy=_env_choice(env, "EOL_MATCH_STRATEGY", "last", MATCH_STRATEGIES),
        inventory_scope=scope,
        region=_raw(env, "EOL_REGION") or _raw(env, "AWS_REGION"),
        metrics_port=port,
        metrics_addr=_env_str(env, "METRICS_ADDR", "0.0.0.0"),
        log_level=log_level,
        log_file=_raw(env, "EOL_LOG_FILE"),
    )
