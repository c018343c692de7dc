"""Measurement - medición normalizada lista para la serie temporal."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Union

DataValue = Union[str, int, float]

# Tags fijos copiados del evento, en este orden
TAG_KEYS = ("deviceName", "deviceId", "locationId", "hubId", "installedAppId", "source")


@dataclass
class Measurement:
    """Medición producida para un evento.

    - tags: metadata indexada (los seis TAG_KEYS + "unit" cuando aplica)
    - data: valores muestreados (str, int o float)
    - timestamp: instante UTC de clasificación
    """

    name: Optional[str]
    tags: Dict[str, Optional[str]] = field(default_factory=dict)
    data: Dict[str, DataValue] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def device_id(self) -> Optional[str]:
        return self.tags.get("deviceId")

    @property
    def unit(self) -> Optional[str]:
        return self.tags.get("unit")
