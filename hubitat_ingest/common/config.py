from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Optional

from dotenv import load_dotenv

from ..classification.filter_policy import FilterConfig
from ..stream.connection_state import ReconnectConfig

_TRUE_VALUES = ("true", "1", "yes", "on")


def _default_env_file() -> str:
    return str(Path.cwd() / ".env")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in _TRUE_VALUES


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_list(name: str) -> FrozenSet[str]:
    # Lista separada por comas; el orden no importa, solo la pertenencia.
    raw = os.getenv(name, "")
    return frozenset(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    hubitat_ws_url: str
    hubitat_verify_ssl: bool
    hubitat_open_timeout: float

    influx_url: str
    influx_database: str
    influx_retention_policy: str
    influx_username: str
    influx_password: str
    influx_token: str
    influx_org: str
    influx_bucket: str
    batch_interval: float
    batch_size: int

    devices_to_log: FrozenSet[str]
    devices_to_ignore: FrozenSet[str]
    measurements_to_log: FrozenSet[str]
    measurements_to_ignore: FrozenSet[str]

    reconnect: ReconnectConfig
    message_queue_size: int

    health_port: int
    log_level: str
    dry_run: bool

    def filter_config(self) -> FilterConfig:
        return FilterConfig(
            devices_to_log=self.devices_to_log,
            devices_to_ignore=self.devices_to_ignore,
            measurements_to_log=self.measurements_to_log,
            measurements_to_ignore=self.measurements_to_ignore,
        )

    @property
    def influx_target(self) -> str:
        """Destino legible para logs (sin credenciales)."""
        return f"{self.influx_bucket or self.influx_database} at {self.influx_url}"


def get_settings(env_file: Optional[str] = None) -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = env_file or os.getenv("HUBITAT_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    reconnect = ReconnectConfig(
        base_delay=_env_float("RECONNECT_BASE_DELAY", "2"),
        max_delay=_env_float("RECONNECT_MAX_DELAY", "60"),
        max_attempts=_env_int("RECONNECT_MAX_ATTEMPTS", "20"),
        cooldown_seconds=_env_float("RECONNECT_COOLDOWN", "300"),
        jitter=_env_bool("RECONNECT_JITTER", "true"),
        stable_seconds=_env_float("RECONNECT_STABLE_SECONDS", "30"),
    )

    return Settings(
        hubitat_ws_url=os.getenv("HUBITAT_WS_URL", "ws://localhost/eventsocket"),
        # Los hubs sirven wss:// con certificado autofirmado
        hubitat_verify_ssl=_env_bool("HUBITAT_VERIFY_SSL", "false"),
        hubitat_open_timeout=_env_float("HUBITAT_OPEN_TIMEOUT", "10"),
        influx_url=os.getenv("INFLUXDB_URL", "http://localhost:8086"),
        influx_database=os.getenv("INFLUXDB_DATABASE", "hubitat"),
        influx_retention_policy=os.getenv("INFLUXDB_RETENTION_POLICY", ""),
        influx_username=os.getenv("INFLUXDB_USERNAME", ""),
        influx_password=os.getenv("INFLUXDB_PASSWORD", ""),
        influx_token=os.getenv("INFLUXDB_TOKEN", ""),
        influx_org=os.getenv("INFLUXDB_ORG", ""),
        influx_bucket=os.getenv("INFLUXDB_BUCKET", ""),
        batch_interval=_env_float("INFLUX_BATCH_INTERVAL", "10"),
        batch_size=_env_int("INFLUX_BATCH_SIZE", "500"),
        devices_to_log=_env_list("DEVICES_TO_LOG"),
        devices_to_ignore=_env_list("DEVICES_TO_IGNORE"),
        measurements_to_log=_env_list("MEASUREMENTS_TO_LOG"),
        measurements_to_ignore=_env_list("MEASUREMENTS_TO_IGNORE"),
        reconnect=reconnect,
        message_queue_size=_env_int("MESSAGE_QUEUE_SIZE", "1000"),
        health_port=_env_int("HEALTH_PORT", "0"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        dry_run=_env_bool("HUBITAT_DRY_RUN", "false"),
    )
