"""MeasurementClassifier - transforma HubEvent en Measurement.

Orden de evaluación:
1. Tags base: los seis campos fijos del evento, copiados tal cual
2. Capability mapeada → regla de la tabla (BINARY, TICKS, THREE_AXIS)
3. Sin capability, o capability que no produjo data → fallback numérico/string

Determinista: el mismo evento produce siempre los mismos tags y data.
Solo el timestamp depende del reloj.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from ..core.domain.capabilities import CapabilityEncoding, CapabilityRule, get_rule
from ..core.domain.hub_event import HubEvent
from ..core.domain.measurement import DataValue, Measurement

logger = logging.getLogger(__name__)

# Cualquier caracter fuera de dígitos, punto, coma o signo menos → string opaco
NON_NUMERIC_PATTERN = re.compile(r"[^0-9.,\-]")

AXIS_KEYS = ("valueX", "valueY", "valueZ")

# Componente de threeAxis: entero con signo opcional, solo dígitos ASCII
AXIS_COMPONENT_PATTERN = re.compile(r"-?[0-9]+")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MeasurementClassifier:
    """Clasificador de eventos por capability.

    Uso:
        classifier = MeasurementClassifier()
        measurement = classifier.classify(event)
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or _utcnow

    def classify(self, event: HubEvent) -> Measurement:
        """Clasifica un evento.

        Args:
            event: Evento decodificado

        Returns:
            Measurement con name, tags, data y timestamp UTC
        """
        tags = self._base_tags(event)
        data: Dict[str, DataValue] = {}
        value = event.value if event.value is not None else ""

        rule = get_rule(event.name)
        if rule is not None:
            tags["unit"] = rule.unit
            self._apply_rule(rule, value, data)

        if not data:
            self._apply_fallback(event, value, tags, data)

        return Measurement(
            name=event.name,
            tags=tags,
            data=data,
            timestamp=self._clock(),
        )

    @staticmethod
    def _base_tags(event: HubEvent) -> Dict[str, Optional[str]]:
        return {
            "deviceName": event.display_name,
            "deviceId": event.device_id,
            "locationId": event.location_id,
            "hubId": event.hub_id,
            "installedAppId": event.installed_app_id,
            "source": event.source,
        }

    def _apply_rule(self, rule: CapabilityRule, value: str, data: Dict[str, DataValue]) -> None:
        if rule.encoding == CapabilityEncoding.BINARY:
            data["value"] = value
            data["valueBinary"] = rule.binary_value(value)
        elif rule.encoding == CapabilityEncoding.TICKS:
            data["value"] = value
        elif rule.encoding == CapabilityEncoding.THREE_AXIS:
            data.update(parse_three_axis(value))

    @staticmethod
    def _apply_fallback(
        event: HubEvent,
        value: str,
        tags: Dict[str, Optional[str]],
        data: Dict[str, DataValue],
    ) -> None:
        if NON_NUMERIC_PATTERN.search(value):
            data["value"] = value
            return

        tags["unit"] = event.unit
        try:
            data["value"] = float(value)
        except ValueError:
            data["value"] = value


def parse_three_axis(value: str) -> Dict[str, int]:
    """Parsea "x,y,z" a valueX/valueY/valueZ.

    Los fragmentos vacíos se descartan. Un componente que no es un entero plano
    (con signo opcional) se omite; el resultado puede tener menos de tres claves.
    """
    parts = [p for p in value.split(",") if p]
    axes: Dict[str, int] = {}
    for key, part in zip(AXIS_KEYS, parts):
        if AXIS_COMPONENT_PATTERN.fullmatch(part):
            axes[key] = int(part)
        else:
            logger.debug("[CLASSIFIER] threeAxis component %s=%r is not an integer", key, part)
    return axes


_default_classifier = MeasurementClassifier()


def classify_event(event: HubEvent) -> Measurement:
    """Clasifica con el reloj del sistema."""
    return _default_classifier.classify(event)
