"""Sink InfluxDB con escritura en batch.

Usa el WriteApi en modo batching de influxdb-client: write() solo encola y
un hilo interno hace flush cada batch_interval segundos. Los errores de
flush llegan por error_callback y se reenvían a on_write_failed.

Compatibilidad InfluxDB 1.x:
- token = "usuario:password"
- bucket = "database/retention_policy"
- org = "-"
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple

from influxdb_client import InfluxDBClient, Point, WriteOptions, WritePrecision

from ..metrics.prometheus import SINK_WRITE_FAILURES
from .base import DataValue, MeasurementSink, SinkWriteError

logger = logging.getLogger(__name__)


class InfluxMeasurementSink(MeasurementSink):
    """Escribe mediciones a InfluxDB.

    Uso:
        sink = InfluxMeasurementSink.from_settings(settings)
        sink.write("switch", {"value": "on", "valueBinary": 1}, tags, ts)
        sink.close()
    """

    def __init__(
        self,
        url: str,
        bucket: str,
        token: str = "",
        org: str = "-",
        batch_interval: float = 10.0,
        batch_size: int = 500,
        client: Optional[InfluxDBClient] = None,
    ):
        super().__init__()
        self._url = url
        self._bucket = bucket
        self._org = org
        self._client = client or InfluxDBClient(url=url, token=token, org=org)
        self._write_api = self._client.write_api(
            write_options=WriteOptions(
                batch_size=batch_size,
                flush_interval=int(batch_interval * 1000),
            ),
            error_callback=self._on_error,
        )
        self._lock = threading.Lock()
        self._closed = False
        self._writes = 0
        self._failures = 0

    @classmethod
    def from_settings(cls, settings: Any) -> "InfluxMeasurementSink":
        """Construye el sink desde Settings (1.x o 2.x según haya token)."""
        if settings.influx_token:
            token = settings.influx_token
            org = settings.influx_org or "-"
        else:
            token = f"{settings.influx_username}:{settings.influx_password}"
            org = "-"

        bucket = settings.influx_bucket or settings.influx_database
        if not settings.influx_bucket and settings.influx_retention_policy:
            bucket = f"{settings.influx_database}/{settings.influx_retention_policy}"

        return cls(
            url=settings.influx_url,
            bucket=bucket,
            token=token,
            org=org,
            batch_interval=settings.batch_interval,
            batch_size=settings.batch_size,
        )

    def write(
        self,
        name: str,
        data: Mapping[str, DataValue],
        tags: Mapping[str, Optional[str]],
        timestamp: Optional[datetime] = None,
    ) -> None:
        if self._closed:
            self._fail(SinkWriteError(f"Sink closed, dropped measurement {name}"))
            return
        if not name:
            self._fail(SinkWriteError("Measurement without name"))
            return

        point = build_point(name, data, tags, timestamp)
        try:
            self._write_api.write(bucket=self._bucket, org=self._org, record=point)
            self._writes += 1
        except Exception as e:
            self._fail(SinkWriteError(f"Write of {name} failed: {e}", e))

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True

        logger.info("[INFLUX] Flushing and closing (writes=%d failures=%d)", self._writes, self._failures)
        try:
            self._write_api.close()
        finally:
            self._client.close()

    def _on_error(self, conf: Tuple[str, str, str], data: Any, exception: Exception) -> None:
        bucket = conf[0] if conf else self._bucket
        self._fail(SinkWriteError(f"Batch write to {bucket} failed: {exception}", exception))

    def _fail(self, error: SinkWriteError) -> None:
        self._failures += 1
        SINK_WRITE_FAILURES.inc()
        logger.error("[INFLUX] %s", error)
        self._report_failure(error)

    @property
    def stats(self) -> dict:
        return {
            "sink": "influxdb",
            "url": self._url,
            "bucket": self._bucket,
            "writes": self._writes,
            "failures": self._failures,
            "closed": self._closed,
        }


def build_point(
    name: str,
    data: Mapping[str, DataValue],
    tags: Mapping[str, Optional[str]],
    timestamp: Optional[datetime] = None,
) -> Point:
    """Construye un Point. InfluxDB no admite tags vacíos: se omiten."""
    point = Point(name)
    for key, value in tags.items():
        if value:
            point.tag(key, value)
    for key, value in data.items():
        point.field(key, value)
    if timestamp is not None:
        point.time(timestamp, WritePrecision.NS)
    return point
