"""Sinks de series temporales (destino de las mediciones)."""

from .base import MeasurementSink, SinkWriteError
from .influx import InfluxMeasurementSink
from .logging_sink import LoggingSink

__all__ = [
    "MeasurementSink",
    "SinkWriteError",
    "InfluxMeasurementSink",
    "LoggingSink",
]
