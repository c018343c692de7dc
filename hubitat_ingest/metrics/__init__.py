"""Métricas Prometheus del servicio."""
