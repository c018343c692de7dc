"""Clasificación y filtrado de eventos del hub."""

from .classifier import MeasurementClassifier, classify_event, parse_three_axis
from .filter_policy import FilterConfig, FilterPolicy, FilterResult

__all__ = [
    "MeasurementClassifier",
    "classify_event",
    "parse_three_axis",
    "FilterConfig",
    "FilterPolicy",
    "FilterResult",
]
