"""Núcleo de dominio del servicio de ingesta."""
