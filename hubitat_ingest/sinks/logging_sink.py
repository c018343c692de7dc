"""Sink de dry-run: loguea las mediciones en lugar de escribirlas."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Mapping, Optional

from .base import DataValue, MeasurementSink

logger = logging.getLogger(__name__)


class LoggingSink(MeasurementSink):
    """Loguea "Writing Data" / "Writing Tags" por cada medición."""

    def __init__(self, level: int = logging.INFO):
        super().__init__()
        self._level = level
        self._writes = 0
        self._closed = False

    def write(
        self,
        name: str,
        data: Mapping[str, DataValue],
        tags: Mapping[str, Optional[str]],
        timestamp: Optional[datetime] = None,
    ) -> None:
        self._writes += 1
        logger.log(self._level, "[DRY_RUN] %s Writing Data: %s", name, dict(data))
        logger.log(self._level, "[DRY_RUN] %s Writing Tags: %s", name, dict(tags))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.info("[DRY_RUN] Closed after %d writes", self._writes)

    @property
    def stats(self) -> dict:
        return {"sink": "dry_run", "writes": self._writes, "closed": self._closed}
