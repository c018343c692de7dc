"""EventPipeline - procesa un payload del hub de punta a punta.

Flujo por mensaje (síncrono, uno a la vez desde el worker del manager):
  payload → MessageDecoder → MeasurementClassifier → FilterPolicy → sink.write

Un payload malformado se descarta solo; un fallo del sink se loguea y la
medición no se reintenta. Nada de esto corta la sesión.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Optional, Union

from ..classification.classifier import MeasurementClassifier
from ..classification.filter_policy import FilterPolicy
from ..metrics.prometheus import HUB_MESSAGES, HUB_PROCESSING_LATENCY
from ..sinks.base import MeasurementSink
from ..stream.decoder import DecodeError, MessageDecoder

logger = logging.getLogger(__name__)

STATS_LOG_EVERY = 100


class PipelineOutcome(str, Enum):
    """Resultado de procesar un mensaje."""
    FORWARDED = "forwarded"
    FILTERED = "filtered"
    DECODE_ERROR = "decode_error"
    SINK_ERROR = "sink_error"


class PipelineStats:
    """Estadísticas del pipeline."""

    def __init__(self):
        self.received = 0
        self.forwarded = 0
        self.filtered = 0
        self.decode_errors = 0
        self.sink_errors = 0
        self.last_message_at: float = 0

    def __str__(self) -> str:
        return (
            f"Stats: received={self.received} forwarded={self.forwarded} "
            f"filtered={self.filtered} decode_errors={self.decode_errors} "
            f"sink_errors={self.sink_errors}"
        )

    def to_dict(self) -> dict:
        return {
            "received": self.received,
            "forwarded": self.forwarded,
            "filtered": self.filtered,
            "decode_errors": self.decode_errors,
            "sink_errors": self.sink_errors,
            "last_message_at": self.last_message_at,
        }


class EventPipeline:
    """Une decoder, clasificador, filtro y sink.

    El sink se inyecta; el pipeline no conoce su implementación.
    """

    def __init__(
        self,
        sink: MeasurementSink,
        filter_policy: Optional[FilterPolicy] = None,
        classifier: Optional[MeasurementClassifier] = None,
        decoder: Optional[MessageDecoder] = None,
    ):
        self._sink = sink
        self._filter = filter_policy or FilterPolicy()
        self._classifier = classifier or MeasurementClassifier()
        self._decoder = decoder or MessageDecoder()
        self._stats = PipelineStats()

    @property
    def stats(self) -> PipelineStats:
        return self._stats

    def process(self, payload: Union[str, bytes]) -> PipelineOutcome:
        """Procesa un mensaje completo."""
        self._stats.received += 1
        self._stats.last_message_at = time.time()
        start = time.perf_counter()
        logger.debug("[PIPELINE] Message Received: %s", payload)

        outcome = self._process(payload)

        HUB_MESSAGES.labels(status=outcome.value).inc()
        HUB_PROCESSING_LATENCY.observe(time.perf_counter() - start)

        if self._stats.received % STATS_LOG_EVERY == 0:
            logger.info("[PIPELINE] %s", self._stats)
        return outcome

    def _process(self, payload: Union[str, bytes]) -> PipelineOutcome:
        try:
            event = self._decoder.decode(payload)
        except DecodeError as e:
            self._stats.decode_errors += 1
            logger.error("[PIPELINE] Error deserializing message: %s (payload=%r)", e, e.payload_excerpt)
            return PipelineOutcome.DECODE_ERROR

        measurement = self._classifier.classify(event)

        result = self._filter.check(measurement)
        if not result.allowed:
            self._stats.filtered += 1
            logger.debug(
                "[PIPELINE] Filtered %s device=%s rule=%s",
                measurement.name,
                measurement.device_id,
                result.rule,
            )
            return PipelineOutcome.FILTERED

        logger.debug("[PIPELINE] Writing Data: %s", measurement.data)
        logger.debug("[PIPELINE] Writing Tags: %s", measurement.tags)
        try:
            self._sink.write(
                measurement.name,
                measurement.data,
                measurement.tags,
                measurement.timestamp,
            )
        except Exception as e:
            self._stats.sink_errors += 1
            logger.exception("[PIPELINE] Sink write failed for %s: %s", measurement.name, e)
            return PipelineOutcome.SINK_ERROR

        self._stats.forwarded += 1
        return PipelineOutcome.FORWARDED
