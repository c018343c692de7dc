"""Tests de la configuración por variables de entorno.

Ejecutar:
    pytest tests/test_config.py -v
"""

import pytest

from hubitat_ingest.common.config import get_settings

ENV_VARS = [
    "HUBITAT_WS_URL", "HUBITAT_VERIFY_SSL", "HUBITAT_OPEN_TIMEOUT",
    "INFLUXDB_URL", "INFLUXDB_DATABASE", "INFLUXDB_RETENTION_POLICY",
    "INFLUXDB_USERNAME", "INFLUXDB_PASSWORD", "INFLUXDB_TOKEN", "INFLUXDB_ORG",
    "INFLUXDB_BUCKET", "INFLUX_BATCH_INTERVAL", "INFLUX_BATCH_SIZE",
    "DEVICES_TO_LOG", "DEVICES_TO_IGNORE", "MEASUREMENTS_TO_LOG", "MEASUREMENTS_TO_IGNORE",
    "RECONNECT_BASE_DELAY", "RECONNECT_MAX_DELAY", "RECONNECT_MAX_ATTEMPTS",
    "RECONNECT_COOLDOWN", "RECONNECT_JITTER", "RECONNECT_STABLE_SECONDS",
    "MESSAGE_QUEUE_SIZE", "HEALTH_PORT",
    "LOG_LEVEL", "HUBITAT_DRY_RUN", "HUBITAT_ENV_FILE",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Entorno vacío y cwd sin .env."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestDefaults:

    def test_defaults(self, clean_env):
        settings = get_settings()

        assert settings.hubitat_ws_url == "ws://localhost/eventsocket"
        assert settings.hubitat_verify_ssl is False
        assert settings.influx_url == "http://localhost:8086"
        assert settings.influx_database == "hubitat"
        assert settings.batch_interval == 10.0
        assert settings.batch_size == 500
        assert settings.reconnect.max_attempts == 20
        assert settings.reconnect.jitter is True
        assert settings.reconnect.stable_seconds == 30.0
        assert settings.health_port == 0
        assert settings.dry_run is False
        assert settings.filter_config().is_empty


class TestEnvironment:

    def test_filter_lists(self, clean_env):
        clean_env.setenv("DEVICES_TO_LOG", "12, 34,,56 ")
        clean_env.setenv("MEASUREMENTS_TO_IGNORE", "battery")

        cfg = get_settings().filter_config()

        assert cfg.devices_to_log == frozenset({"12", "34", "56"})
        assert cfg.measurements_to_ignore == frozenset({"battery"})
        assert cfg.devices_to_ignore == frozenset()

    def test_reconnect_settings(self, clean_env):
        clean_env.setenv("RECONNECT_BASE_DELAY", "0.5")
        clean_env.setenv("RECONNECT_MAX_ATTEMPTS", "5")
        clean_env.setenv("RECONNECT_JITTER", "false")
        clean_env.setenv("RECONNECT_STABLE_SECONDS", "5")

        reconnect = get_settings().reconnect

        assert reconnect.base_delay == 0.5
        assert reconnect.max_attempts == 5
        assert reconnect.jitter is False
        assert reconnect.stable_seconds == 5.0

    @pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("YES", True), ("no", False)])
    def test_booleans(self, clean_env, raw, expected):
        clean_env.setenv("HUBITAT_DRY_RUN", raw)

        assert get_settings().dry_run is expected

    def test_invalid_integer_names_variable(self, clean_env):
        clean_env.setenv("INFLUX_BATCH_SIZE", "lots")

        with pytest.raises(ValueError, match="INFLUX_BATCH_SIZE"):
            get_settings()

    def test_invalid_float_names_variable(self, clean_env):
        clean_env.setenv("RECONNECT_COOLDOWN", "soon")

        with pytest.raises(ValueError, match="RECONNECT_COOLDOWN"):
            get_settings()

    def test_log_level_is_upper_case(self, clean_env):
        clean_env.setenv("LOG_LEVEL", "debug")

        assert get_settings().log_level == "DEBUG"


class TestEnvFile:

    def test_env_file_is_loaded(self, clean_env, tmp_path):
        env_file = tmp_path / "hub.env"
        env_file.write_text("HUBITAT_WS_URL=wss://10.0.0.5/eventsocket\nINFLUXDB_DATABASE=home\n")

        settings = get_settings(str(env_file))

        assert settings.hubitat_ws_url == "wss://10.0.0.5/eventsocket"
        assert settings.influx_database == "home"
        assert settings.influx_target == "home at http://localhost:8086"

    def test_real_environment_wins(self, clean_env, tmp_path):
        env_file = tmp_path / "hub.env"
        env_file.write_text("INFLUXDB_DATABASE=from_file\n")
        clean_env.setenv("INFLUXDB_DATABASE", "from_env")

        assert get_settings(str(env_file)).influx_database == "from_env"

    def test_missing_env_file_is_ignored(self, clean_env, tmp_path):
        settings = get_settings(str(tmp_path / "missing.env"))

        assert settings.influx_database == "hubitat"
