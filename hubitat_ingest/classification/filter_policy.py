"""FilterPolicy - decide si una medición se reenvía al sink.

Cuatro reglas independientes, todas deben pasar:
1. Allow-list de dispositivos no vacía y deviceId ausente → rechazo
2. deviceId en la deny-list de dispositivos → rechazo
3. Allow-list de mediciones no vacía y name ausente → rechazo
4. name en la deny-list de mediciones → rechazo

Lista vacía = sin restricción.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from ..core.domain.measurement import Measurement


@dataclass(frozen=True)
class FilterConfig:
    """Configuración inmutable de filtros (vida del proceso)."""
    devices_to_log: FrozenSet[str] = frozenset()
    devices_to_ignore: FrozenSet[str] = frozenset()
    measurements_to_log: FrozenSet[str] = frozenset()
    measurements_to_ignore: FrozenSet[str] = frozenset()

    @classmethod
    def from_lists(
        cls,
        devices_to_log: Iterable[str] = (),
        devices_to_ignore: Iterable[str] = (),
        measurements_to_log: Iterable[str] = (),
        measurements_to_ignore: Iterable[str] = (),
    ) -> "FilterConfig":
        return cls(
            devices_to_log=frozenset(devices_to_log),
            devices_to_ignore=frozenset(devices_to_ignore),
            measurements_to_log=frozenset(measurements_to_log),
            measurements_to_ignore=frozenset(measurements_to_ignore),
        )

    @property
    def is_empty(self) -> bool:
        return not (
            self.devices_to_log
            or self.devices_to_ignore
            or self.measurements_to_log
            or self.measurements_to_ignore
        )


@dataclass(frozen=True)
class FilterResult:
    """Resultado de evaluar una medición."""
    allowed: bool
    rule: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


_ALLOWED = FilterResult(allowed=True)


class FilterPolicy:
    """Predicado sin efectos laterales sobre Measurement."""

    def __init__(self, config: Optional[FilterConfig] = None):
        self._config = config or FilterConfig()

    @property
    def config(self) -> FilterConfig:
        return self._config

    def check(self, measurement: Measurement) -> FilterResult:
        """Evalúa las cuatro reglas y retorna la primera que rechaza."""
        cfg = self._config
        device_id = measurement.device_id
        name = measurement.name

        if cfg.devices_to_log and device_id not in cfg.devices_to_log:
            return FilterResult(allowed=False, rule="devices_to_log")
        if device_id in cfg.devices_to_ignore:
            return FilterResult(allowed=False, rule="devices_to_ignore")
        if cfg.measurements_to_log and name not in cfg.measurements_to_log:
            return FilterResult(allowed=False, rule="measurements_to_log")
        if name in cfg.measurements_to_ignore:
            return FilterResult(allowed=False, rule="measurements_to_ignore")
        return _ALLOWED

    def allows(self, measurement: Measurement) -> bool:
        return self.check(measurement).allowed
