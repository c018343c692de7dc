"""HubIngestService - arma el pipeline completo y controla el apagado.

Orden de apagado: primero el ConnectionManager (cierra la sesión y espera
al worker), después el sink (flush). Así ninguna medición en proceso llega
a un sink cerrado.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .classification.filter_policy import FilterPolicy
from .common.config import Settings
from .pipelines.processor import EventPipeline
from .sinks.base import MeasurementSink, SinkWriteError
from .sinks.influx import InfluxMeasurementSink
from .sinks.logging_sink import LoggingSink
from .stream.connection_manager import ConnectionManager
from .stream.connection_state import ReconnectPolicy
from .stream.transport import StreamTransport, WebSocketTransport

logger = logging.getLogger(__name__)


class HubIngestService:
    """Servicio de ingesta hub → sink."""

    def __init__(
        self,
        settings: Settings,
        sink: Optional[MeasurementSink] = None,
        transport: Optional[StreamTransport] = None,
    ):
        self._settings = settings
        self._sink = sink or self._build_sink(settings)
        self._sink.on_write_failed = self._on_sink_failure

        self._pipeline = EventPipeline(
            sink=self._sink,
            filter_policy=FilterPolicy(settings.filter_config()),
        )

        self._manager = ConnectionManager(
            url=settings.hubitat_ws_url,
            transport=transport or WebSocketTransport(
                verify_ssl=settings.hubitat_verify_ssl,
                open_timeout=settings.hubitat_open_timeout,
            ),
            policy=ReconnectPolicy(settings.reconnect),
            max_queue_size=settings.message_queue_size,
        )
        self._manager.on_message = self._pipeline.process

        self._lock = threading.Lock()
        self._stopped = False

    @staticmethod
    def _build_sink(settings: Settings) -> MeasurementSink:
        if settings.dry_run:
            logger.info("[SERVICE] Dry run: measurements will be logged, not written")
            return LoggingSink()
        return InfluxMeasurementSink.from_settings(settings)

    @property
    def manager(self) -> ConnectionManager:
        return self._manager

    @property
    def pipeline(self) -> EventPipeline:
        return self._pipeline

    @property
    def sink(self) -> MeasurementSink:
        return self._sink

    def start(self) -> bool:
        logger.info("[SERVICE] Configured to receive data from %s", self._settings.hubitat_ws_url)
        if not self._settings.dry_run:
            logger.info("[SERVICE] Configured to write data to %s", self._settings.influx_target)
        return self._manager.start()

    def stop(self) -> None:
        """Detiene manager y sink, en ese orden. Idempotente."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True

        logger.info("[SERVICE] Stopping hub ingest service")
        try:
            self._manager.stop()
        finally:
            self._sink.close()
        logger.info("[SERVICE] Stopped. %s", self._pipeline.stats)

    def _on_sink_failure(self, error: SinkWriteError) -> None:
        logger.warning("[SERVICE] Measurement dropped by sink: %s", error)

    @property
    def stats(self) -> dict:
        return {
            "connection": self._manager.stats,
            "pipeline": self._pipeline.stats.to_dict(),
            "sink": self._sink.stats,
        }

    def health_check(self) -> dict:
        connection = self._manager.health_check()
        return {
            "healthy": connection["healthy"],
            "connection": connection,
            "pipeline": self._pipeline.stats.to_dict(),
        }
