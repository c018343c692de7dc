"""Hubitat ingest service.

Recibe eventos del hub por websocket, los clasifica por capability y los
reenvía como mediciones a InfluxDB.
"""

__version__ = "0.4.0"
