"""Decodificador de mensajes del eventsocket.

Convierte el payload de texto crudo en un HubEvent. Un payload malformado
produce DecodeError; quien llama lo loguea y descarta solo ese mensaje.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

import orjson
from pydantic import ValidationError

from ..core.domain.hub_event import HubEvent

logger = logging.getLogger(__name__)

_EXCERPT_LEN = 200


class DecodeError(ValueError):
    """Payload que no se puede interpretar como HubEvent."""

    def __init__(self, message: str, payload: Union[str, bytes, None] = None, cause: Optional[Exception] = None):
        self.payload_excerpt = _excerpt(payload)
        self.cause = cause
        super().__init__(message)


def _excerpt(payload: Union[str, bytes, None]) -> str:
    if payload is None:
        return ""
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    return payload[:_EXCERPT_LEN]


class MessageDecoder:
    """Parsea payloads JSON a HubEvent."""

    def decode(self, payload: Union[str, bytes]) -> HubEvent:
        """Decodifica un payload.

        Args:
            payload: Texto JSON recibido por el socket

        Returns:
            HubEvent con los campos presentes (el resto en None)

        Raises:
            DecodeError: JSON inválido, no es un objeto o tipos incompatibles
        """
        try:
            data = orjson.loads(payload)
        except (orjson.JSONDecodeError, TypeError) as e:
            raise DecodeError(f"Invalid JSON: {e}", payload, e) from e

        if not isinstance(data, dict):
            raise DecodeError(
                f"Expected JSON object, got {type(data).__name__}",
                payload,
            )

        try:
            return HubEvent.model_validate(data)
        except ValidationError as e:
            raise DecodeError(
                f"Invalid event fields: {e.error_count()} error(s)",
                payload,
                e,
            ) from e


_default_decoder = MessageDecoder()


def decode_message(payload: Union[str, bytes]) -> HubEvent:
    """Atajo sobre un MessageDecoder compartido (no tiene estado)."""
    return _default_decoder.decode(payload)
