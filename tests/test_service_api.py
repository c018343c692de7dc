"""Tests del servicio armado y de los endpoints de health.

Ejecutar:
    pytest tests/test_service_api.py -v
"""

import json
import queue
import time
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from hubitat_ingest.api import create_app
from hubitat_ingest.common.config import Settings
from hubitat_ingest.main import main
from hubitat_ingest.service import HubIngestService
from hubitat_ingest.sinks.base import MeasurementSink, SinkWriteError
from hubitat_ingest.sinks.logging_sink import LoggingSink
from hubitat_ingest.stream.connection_state import ReconnectConfig
from hubitat_ingest.stream.transport import (
    SessionClosed,
    StreamSession,
    StreamTransport,
    TransportError,
)


# =============================================================================
# FIXTURES
# =============================================================================

class ScriptedSession(StreamSession):
    """Entrega los payloads del script y luego bloquea hasta close()."""

    def __init__(self, payloads):
        self._inbox = queue.Queue()
        for payload in payloads:
            self._inbox.put(payload)
        self.closed = False

    def recv(self) -> str:
        item = self._inbox.get()
        if item is None:
            raise SessionClosed(code=1000, reason="local")
        return item

    def send(self, payload: str) -> None:
        pass

    def close(self) -> None:
        self.closed = True
        self._inbox.put(None)


class ScriptedTransport(StreamTransport):

    def __init__(self, payloads=(), fail=False):
        self._payloads = list(payloads)
        self._fail = fail
        self.sessions = []

    @property
    def transport_name(self) -> str:
        return "scripted"

    def connect(self, url: str) -> StreamSession:
        if self._fail:
            raise TransportError("refused")
        session = ScriptedSession(self._payloads)
        self.sessions.append(session)
        return session


def make_settings(**overrides) -> Settings:
    values = dict(
        hubitat_ws_url="ws://hub.local/eventsocket",
        hubitat_verify_ssl=False,
        hubitat_open_timeout=1.0,
        influx_url="http://influx:8086",
        influx_database="hubitat",
        influx_retention_policy="",
        influx_username="",
        influx_password="",
        influx_token="",
        influx_org="",
        influx_bucket="",
        batch_interval=1.0,
        batch_size=10,
        devices_to_log=frozenset(),
        devices_to_ignore=frozenset(),
        measurements_to_log=frozenset(),
        measurements_to_ignore=frozenset({"battery"}),
        reconnect=ReconnectConfig(base_delay=0.01, jitter=False),
        message_queue_size=100,
        health_port=0,
        log_level="INFO",
        dry_run=True,
    )
    values.update(overrides)
    return Settings(**values)


def wait_until(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def payload(name, value, device_id=1):
    return json.dumps({"name": name, "value": value, "deviceId": device_id, "displayName": "Dev"})


# =============================================================================
# TEST 1: SERVICIO
# =============================================================================

class TestHubIngestService:
    """Armado completo: transporte → pipeline → sink."""

    def test_dry_run_uses_logging_sink(self):
        service = HubIngestService(make_settings(), transport=ScriptedTransport())

        assert isinstance(service.sink, LoggingSink)

    def test_end_to_end(self):
        sink = MagicMock(spec=MeasurementSink)
        transport = ScriptedTransport([
            payload("switch", "on"),
            "garbage",
            payload("battery", "87"),
            payload("temperature", "21.5"),
        ])
        service = HubIngestService(make_settings(), sink=sink, transport=transport)

        service.start()
        assert wait_until(lambda: service.pipeline.stats.received == 4)
        service.stop()

        names = [c.args[0] for c in sink.write.call_args_list]
        assert names == ["switch", "temperature"]
        assert service.pipeline.stats.decode_errors == 1
        assert service.pipeline.stats.filtered == 1
        sink.close.assert_called_once()
        assert transport.sessions[0].closed

    def test_stop_is_idempotent(self):
        sink = MagicMock(spec=MeasurementSink)
        service = HubIngestService(make_settings(), sink=sink, transport=ScriptedTransport())

        service.start()
        service.stop()
        service.stop()

        sink.close.assert_called_once()

    def test_sink_failure_callback_is_wired(self):
        sink = LoggingSink()
        service = HubIngestService(make_settings(), sink=sink, transport=ScriptedTransport())

        sink._report_failure(SinkWriteError("dropped"))

        assert sink.on_write_failed == service._on_sink_failure

    def test_stats_sections(self):
        service = HubIngestService(make_settings(), transport=ScriptedTransport())

        stats = service.stats

        assert set(stats) == {"connection", "pipeline", "sink"}
        assert stats["sink"]["sink"] == "dry_run"


# =============================================================================
# TEST 2: ENDPOINTS
# =============================================================================

class TestHealthEndpoints:
    """/health, /ready, /stats y /metrics."""

    @pytest.fixture
    def connected_service(self):
        service = HubIngestService(make_settings(), transport=ScriptedTransport())
        service.start()
        assert service.manager.wait_connected(2.0)
        yield service
        service.stop()

    def test_health_always_ok(self):
        service = HubIngestService(make_settings(), transport=ScriptedTransport())
        client = TestClient(create_app(service))

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_ready_503_when_disconnected(self):
        service = HubIngestService(make_settings(), transport=ScriptedTransport(fail=True))
        client = TestClient(create_app(service))

        response = client.get("/ready")

        assert response.status_code == 503

    def test_ready_when_connected(self, connected_service):
        client = TestClient(create_app(connected_service))

        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["state"] == "connected"

    def test_stats(self, connected_service):
        client = TestClient(create_app(connected_service))

        body = client.get("/stats").json()

        assert body["connection"]["transport"] == "scripted"
        assert body["connection"]["state"] == "connected"

    def test_metrics(self):
        service = HubIngestService(make_settings(), transport=ScriptedTransport())
        client = TestClient(create_app(service))

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "hub_messages_total" in response.text


# =============================================================================
# TEST 3: CLI
# =============================================================================

class TestCli:

    def test_invalid_configuration_exits_2(self, monkeypatch, tmp_path, capsys):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("HUBITAT_ENV_FILE", raising=False)
        monkeypatch.setenv("INFLUX_BATCH_SIZE", "many")

        assert main([]) == 2
        assert "INFLUX_BATCH_SIZE" in capsys.readouterr().err
