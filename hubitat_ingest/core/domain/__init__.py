"""Modelos de dominio: eventos del hub, mediciones y tabla de capabilities."""

from .hub_event import HubEvent
from .measurement import Measurement, TAG_KEYS
from .capabilities import CAPABILITY_RULES, CapabilityEncoding, CapabilityRule, get_rule

__all__ = [
    "HubEvent",
    "Measurement",
    "TAG_KEYS",
    "CAPABILITY_RULES",
    "CapabilityEncoding",
    "CapabilityRule",
    "get_rule",
]
