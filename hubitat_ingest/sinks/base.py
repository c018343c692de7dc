"""MeasurementSink - interface del destino de series temporales.

El sink hace su propio batching y flush; el pipeline solo llama write()
y no espera la escritura real. Los fallos asíncronos se reportan por el
callback on_write_failed.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from ..core.domain.measurement import DataValue

logger = logging.getLogger(__name__)



class SinkWriteError(Exception):
    """Escritura fallida en el sink."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class MeasurementSink(ABC):
    """Destino de mediciones clasificadas."""

    def __init__(self) -> None:
        self.on_write_failed: Optional[Callable[[SinkWriteError], Any]] = None

    @abstractmethod
    def write(
        self,
        name: str,
        data: Mapping[str, DataValue],
        tags: Mapping[str, Optional[str]],
        timestamp: Optional[datetime] = None,
    ) -> None:
        """Encola una medición para escritura."""

    @abstractmethod
    def close(self) -> None:
        """Hace flush de lo pendiente y libera recursos. Idempotente."""

    def _report_failure(self, error: SinkWriteError) -> None:
        callback = self.on_write_failed
        if callback is None:
            return
        try:
            callback(error)
        except Exception as e:
            logger.exception("[SINK] on_write_failed callback failed: %s", e)

    @property
    def stats(self) -> dict:
        return {}
