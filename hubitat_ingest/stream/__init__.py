"""Conexión de streaming con el hub.

Estructura:
- transport.py: interface StreamTransport y transporte websocket
- connection_state.py: estados y política de reconexión
- connection_manager.py: máquina de estados + cola de mensajes ordenada
- decoder.py: payload de texto → HubEvent
"""

from .connection_manager import ConnectionManager
from .connection_state import ConnectionState, ReconnectConfig, ReconnectDecision, ReconnectPolicy
from .decoder import DecodeError, MessageDecoder, decode_message
from .transport import (
    SessionClosed,
    StreamSession,
    StreamTransport,
    TransportError,
    WebSocketTransport,
)

__all__ = [
    "ConnectionManager",
    "ConnectionState",
    "ReconnectConfig",
    "ReconnectDecision",
    "ReconnectPolicy",
    "DecodeError",
    "MessageDecoder",
    "decode_message",
    "SessionClosed",
    "StreamSession",
    "StreamTransport",
    "TransportError",
    "WebSocketTransport",
]
