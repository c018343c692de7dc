"""Tabla de capabilities del hub.

Cada entrada describe cómo se codifica el valor de un evento:
- BINARY: "value" crudo + "valueBinary" 0/1 comparando contra un literal
- TICKS: solo "value" crudo, unit="ticks"
- THREE_AXIS: componentes enteros "valueX", "valueY", "valueZ"

La dirección de la comparación BINARY depende de la capability. Por ejemplo
switch="on" produce 1, pero alarm="off" produce 0 y todo lo demás 1.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class CapabilityEncoding(str, Enum):
    """Regla de codificación de una capability."""
    BINARY = "binary"
    TICKS = "ticks"
    THREE_AXIS = "threeAxis"


@dataclass(frozen=True)
class CapabilityRule:
    """Entrada estática de la tabla de capabilities."""
    name: str
    encoding: CapabilityEncoding
    unit: str
    literal: Optional[str] = None
    matched_result: int = 1

    def binary_value(self, value: Optional[str]) -> int:
        """Retorna matched_result si value coincide con el literal, el complemento si no."""
        if value == self.literal:
            return self.matched_result
        return 1 - self.matched_result


def _binary(name: str, literal: str, matched_result: int = 1) -> CapabilityRule:
    return CapabilityRule(
        name=name,
        encoding=CapabilityEncoding.BINARY,
        unit=name,
        literal=literal,
        matched_result=matched_result,
    )


def _ticks(name: str) -> CapabilityRule:
    return CapabilityRule(name=name, encoding=CapabilityEncoding.TICKS, unit="ticks")


_RULES = (
    _binary("acceleration", "active"),
    _binary("alarm", "off", matched_result=0),
    _binary("button", "pushed", matched_result=0),
    _binary("carbonMonoxide", "detected"),
    _binary("consumableStatus", "good"),
    _binary("contact", "closed"),
    _binary("door", "closed"),
    _binary("lock", "locked"),
    _binary("motion", "active"),
    _binary("mute", "muted"),
    _binary("optimisation", "active"),
    _binary("presence", "present"),
    _binary("shock", "detected"),
    _binary("sleeping", "sleeping"),
    _binary("smoke", "detected"),
    _binary("sound", "detected"),
    _binary("switch", "on"),
    _binary("tamper", "detected"),
    _binary("thermostatFanMode", "off", matched_result=0),
    _binary("thermostatMode", "off", matched_result=0),
    _binary("thermostatOperatingState", "heating"),
    _binary("thermostatSetpointMode", "followSchedule", matched_result=0),
    _binary("touch", "touched"),
    _binary("water", "wet"),
    _binary("windowFunction", "active"),
    _binary("windowShade", "closed"),
    CapabilityRule(
        name="threeAxis",
        encoding=CapabilityEncoding.THREE_AXIS,
        unit="threeAxis",
    ),
    _ticks("lastCheckin"),
    _ticks("lastInactive"),
    _ticks("lastMotion"),
)

CAPABILITY_RULES: Dict[str, CapabilityRule] = {rule.name: rule for rule in _RULES}


def get_rule(name: Optional[str]) -> Optional[CapabilityRule]:
    """Busca la regla de una capability. None si no está mapeada."""
    if name is None:
        return None
    return CAPABILITY_RULES.get(name)
