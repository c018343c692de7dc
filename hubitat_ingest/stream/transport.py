"""StreamTransport - interface del transporte de streaming y su implementación websocket.

El ConnectionManager solo conoce StreamTransport/StreamSession y las
excepciones TransportError/SessionClosed, nunca la librería concreta.
"""

from __future__ import annotations

import logging
import ssl
from abc import ABC, abstractmethod
from typing import Optional

from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException
from websockets.sync.client import ClientConnection, connect

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Fallo del transporte (conexión, handshake, envío o recepción)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class SessionClosed(Exception):
    """La sesión se cerró (por el remoto o localmente)."""

    def __init__(self, code: Optional[int] = None, reason: str = "", clean: bool = True):
        self.code = code
        self.reason = reason
        self.clean = clean
        super().__init__(f"Session closed (code={code}, reason={reason!r})")


class StreamSession(ABC):
    """Una conexión abierta."""

    @abstractmethod
    def recv(self) -> str:
        """Bloquea hasta recibir un mensaje de texto.

        Raises:
            SessionClosed: cierre de la sesión
            TransportError: error del transporte
        """

    @abstractmethod
    def send(self, payload: str) -> None:
        """Envía un frame de texto.

        Raises:
            TransportError: si no se pudo enviar
        """

    @abstractmethod
    def close(self) -> None:
        """Cierra la sesión. Puede llamarse desde otro hilo."""


class StreamTransport(ABC):
    """Fábrica de sesiones."""

    @abstractmethod
    def connect(self, url: str) -> StreamSession:
        """Abre una sesión.

        Raises:
            TransportError: si no se pudo abrir
        """

    @property
    @abstractmethod
    def transport_name(self) -> str:
        """Nombre del transporte."""


class WebSocketSession(StreamSession):
    """Sesión sobre websockets.sync.ClientConnection."""

    def __init__(self, connection: ClientConnection):
        self._connection = connection

    def recv(self) -> str:
        try:
            message = self._connection.recv()
        except ConnectionClosedOK as e:
            raise SessionClosed(*_close_info(e), clean=True) from e
        except ConnectionClosed as e:
            raise SessionClosed(*_close_info(e), clean=False) from e
        except (WebSocketException, OSError) as e:
            raise TransportError(f"Receive failed: {e}", e) from e

        if isinstance(message, bytes):
            return message.decode("utf-8", errors="replace")
        return message

    def send(self, payload: str) -> None:
        try:
            self._connection.send(payload)
        except (WebSocketException, OSError) as e:
            raise TransportError(f"Send failed: {e}", e) from e

    def close(self) -> None:
        try:
            self._connection.close()
        except (WebSocketException, OSError) as e:
            logger.warning("[HUB_WS] Error closing socket: %s", e)


def _close_info(exc: ConnectionClosed) -> tuple:
    frame = exc.rcvd
    if frame is None:
        return None, ""
    return frame.code, frame.reason


class WebSocketTransport(StreamTransport):
    """Transporte websocket para el eventsocket del hub.

    Los hubs exponen wss:// con certificado autofirmado; con verify_ssl=False
    no se validan certificados ni hostname.
    """

    def __init__(self, verify_ssl: bool = False, open_timeout: float = 10.0):
        self._verify_ssl = verify_ssl
        self._open_timeout = open_timeout

    @property
    def transport_name(self) -> str:
        return "websocket"

    def connect(self, url: str) -> StreamSession:
        kwargs = {"open_timeout": self._open_timeout}
        if url.lower().startswith("wss://"):
            kwargs["ssl"] = self._ssl_context()

        try:
            connection = connect(url, **kwargs)
        except (WebSocketException, OSError, TimeoutError) as e:
            raise TransportError(f"Connect to {url} failed: {e}", e) from e

        return WebSocketSession(connection)

    def _ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self._verify_ssl:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context
