"""ConnectionManager - sesión de streaming persistente con el hub.

Estados:
    DISCONNECTED → CONNECTING → CONNECTED → (cierre/error) DISCONNECTED → CONNECTING → ...
    STOPPING es alcanzable desde cualquier estado con stop() y es terminal.

Hilos:
- hub-connection: único hilo de control (connect → recv → reconnect). Como
  es el único que abre sesiones, nunca hay dos intentos en vuelo ni dos
  sesiones CONNECTED a la vez.
- hub-worker: único consumidor de la cola FIFO de mensajes. Llama a
  on_message de a un mensaje, en orden de llegada.

Callbacks (estilo paho-mqtt), todos opcionales:
    on_opened()
    on_closed(exc: SessionClosed)
    on_error(exc: Exception)
    on_message(payload: str)
    on_send_failed(payload: str, exc: Exception)
    on_state_changed(new: ConnectionState, previous: ConnectionState)
Una excepción en un callback se loguea y no afecta al manager.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Any, Callable, Optional

from ..metrics.prometheus import HUB_CONNECTION_STATE, HUB_MESSAGES, HUB_RECONNECT_ATTEMPTS
from .connection_state import ConnectionState, ReconnectPolicy
from .transport import SessionClosed, StreamSession, StreamTransport, TransportError

logger = logging.getLogger(__name__)

_STOP = object()

DEFAULT_QUEUE_SIZE = 1000


class ConnectionManager:
    """Mantiene una única conexión lógica con el eventsocket del hub.

    Uso:
        manager = ConnectionManager(url, WebSocketTransport())
        manager.on_message = pipeline.process
        manager.start()
        ...
        manager.stop()
    """

    def __init__(
        self,
        url: str,
        transport: StreamTransport,
        policy: Optional[ReconnectPolicy] = None,
        max_queue_size: int = DEFAULT_QUEUE_SIZE,
    ):
        self._url = url
        self._transport = transport
        self._policy = policy or ReconnectPolicy()

        self._state = ConnectionState.DISCONNECTED
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._connected_event = threading.Event()
        self._stopped = False

        self._session: Optional[StreamSession] = None
        self._queue: queue.Queue = queue.Queue(maxsize=max(0, max_queue_size))
        self._control_thread: Optional[threading.Thread] = None
        self._worker_thread: Optional[threading.Thread] = None

        self.on_opened: Optional[Callable[[], Any]] = None
        self.on_closed: Optional[Callable[[SessionClosed], Any]] = None
        self.on_error: Optional[Callable[[Exception], Any]] = None
        self.on_message: Optional[Callable[[str], Any]] = None
        self.on_send_failed: Optional[Callable[[str, Exception], Any]] = None
        self.on_state_changed: Optional[Callable[[ConnectionState, ConnectionState], Any]] = None

        # Stats
        self._connect_attempts = 0
        self._reconnect_count = 0
        self._sessions_opened = 0
        self._messages_received = 0
        self._messages_delivered = 0
        self._handler_errors = 0
        self._last_message_at: float = 0

    @property
    def url(self) -> str:
        return self._url

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @property
    def is_connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED

    @property
    def is_running(self) -> bool:
        return self._control_thread is not None and self._control_thread.is_alive()

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Inicia la conexión en segundo plano.

        Returns:
            True si el manager quedó corriendo, False si ya fue detenido
        """
        with self._lock:
            if self._stopped:
                logger.warning("[HUB_WS] start() ignored: manager already stopped")
                return False
            if self.is_running:
                return True

            logger.debug("[HUB_WS] Starting connection to %s", self._url)
            self._set_state(ConnectionState.CONNECTING)

            if self._worker_thread is None:
                self._worker_thread = threading.Thread(
                    target=self._worker_loop,
                    daemon=True,
                    name="hub-worker",
                )
                self._worker_thread.start()

            self._control_thread = threading.Thread(
                target=self._run,
                daemon=True,
                name="hub-connection",
            )
            self._control_thread.start()
            return True

    def stop(self, timeout: float = 10.0) -> None:
        """Detiene el manager. Idempotente.

        Cierra la sesión activa una sola vez, cancela cualquier reconexión
        pendiente y espera a que el worker termine los mensajes ya recibidos.
        """
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            self._set_state(ConnectionState.STOPPING)
            self._stop_event.set()
            session, self._session = self._session, None

        if session is not None:
            logger.debug("[HUB_WS] Closing socket")
            session.close()

        if self._control_thread is not None:
            self._control_thread.join(timeout)
            if self._control_thread.is_alive():
                logger.warning("[HUB_WS] Connection thread did not finish in %.1fs", timeout)

        if self._worker_thread is not None:
            self._queue.put(_STOP)
            self._worker_thread.join(timeout)
            if self._worker_thread.is_alive():
                logger.warning("[HUB_WS] Worker thread did not finish in %.1fs", timeout)

        logger.info("[HUB_WS] Stopped. %s", self._stats_line())

    def wait_connected(self, timeout: Optional[float] = None) -> bool:
        """Bloquea hasta que haya una sesión CONNECTED o venza el timeout."""
        return self._connected_event.wait(timeout)

    def send(self, payload: str) -> bool:
        """Envía un frame por la sesión actual.

        Un fallo no es fatal ni se reintenta: se loguea y se notifica por
        on_send_failed.
        """
        with self._lock:
            session = self._session if self._state == ConnectionState.CONNECTED else None

        if session is None:
            error = TransportError("Not connected")
            logger.error("[HUB_WS] Failed to send message %s: not connected", payload)
            self._emit("on_send_failed", payload, error)
            return False

        try:
            session.send(payload)
            return True
        except TransportError as e:
            logger.error("[HUB_WS] Failed to send message %s: %s", payload, e)
            self._emit("on_send_failed", payload, e)
            return False

    # ------------------------------------------------------------------
    # Hilo de control
    # ------------------------------------------------------------------

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self._set_state(ConnectionState.CONNECTING)
            session = self._open_session()
            if session is not None:
                self._receive_loop(session)

            if self._stop_event.is_set():
                break

            self._set_state(ConnectionState.DISCONNECTED)
            decision = self._policy.next_attempt()
            if decision.circuit_opened:
                logger.error(
                    "[HUB_WS] %d consecutive failures, pausing reconnects for %.0fs",
                    decision.attempt,
                    decision.delay,
                )
            else:
                logger.info(
                    "[HUB_WS] Reconnecting in %.1fs (attempt %d)",
                    decision.delay,
                    decision.attempt,
                )

            if self._stop_event.wait(decision.delay):
                break
            self._reconnect_count += 1
            HUB_RECONNECT_ATTEMPTS.inc()

        logger.debug("[HUB_WS] Connection thread exiting")

    def _open_session(self) -> Optional[StreamSession]:
        self._connect_attempts += 1
        try:
            session = self._transport.connect(self._url)
        except TransportError as e:
            logger.error("[HUB_WS] Connection failed: %s", e)
            self._emit("on_error", e)
            return None

        with self._lock:
            if self._stop_event.is_set():
                # stop() llegó durante el handshake
                session.close()
                return None
            self._session = session
            self._set_state(ConnectionState.CONNECTED)

        self._sessions_opened += 1
        logger.info("[HUB_WS] Socket opened")
        self._emit("on_opened")
        return session

    def _receive_loop(self, session: StreamSession) -> None:
        # Solo una sesión que entrega datos o se sostiene stable_seconds
        # cuenta como éxito; un hub que acepta y corta sigue sumando fallos.
        opened_at = time.monotonic()
        healthy = False
        try:
            while not self._stop_event.is_set():
                payload = session.recv()
                if not healthy:
                    healthy = True
                    self._policy.reset()
                self._messages_received += 1
                self._last_message_at = time.time()
                self._queue.put(payload)
        except SessionClosed as e:
            if not self._stop_event.is_set():
                logger.warning("[HUB_WS] Socket closed. Reason: code=%s %s", e.code, e.reason)
                self._emit("on_closed", e)
        except TransportError as e:
            if not self._stop_event.is_set():
                logger.error("[HUB_WS] Socket error: %s", e)
                self._emit("on_error", e)
        finally:
            if not healthy and time.monotonic() - opened_at >= self._policy.config.stable_seconds:
                self._policy.reset()
            self._release_session(session)

    def _release_session(self, session: StreamSession) -> None:
        with self._lock:
            owned = self._session is session
            if owned:
                self._session = None
        # Si stop() ya la tomó, stop() la cierra
        if owned:
            session.close()

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _worker_loop(self) -> None:
        while True:
            payload = self._queue.get()
            try:
                if payload is _STOP:
                    return
                self._deliver(payload)
            finally:
                self._queue.task_done()

    def _deliver(self, payload: str) -> None:
        callback = self.on_message
        if callback is None:
            return
        try:
            callback(payload)
            self._messages_delivered += 1
        except Exception as e:
            self._handler_errors += 1
            HUB_MESSAGES.labels(status="handler_error").inc()
            logger.exception("[HUB_WS] Message handler error: %s", e)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _set_state(self, new_state: ConnectionState) -> None:
        with self._lock:
            previous = self._state
            if previous == new_state or previous == ConnectionState.STOPPING:
                return
            self._state = new_state

            if new_state == ConnectionState.CONNECTED:
                self._connected_event.set()
                HUB_CONNECTION_STATE.set(1)
            else:
                self._connected_event.clear()
                HUB_CONNECTION_STATE.set(0)

            logger.info(
                "[HUB_WS] Socket state changed from %s to %s",
                previous.value,
                new_state.value,
            )
            self._emit("on_state_changed", new_state, previous)

    def _emit(self, name: str, *args: Any) -> None:
        callback = getattr(self, name)
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.exception("[HUB_WS] Callback %s failed: %s", name, e)

    def _stats_line(self) -> str:
        return (
            f"attempts={self._connect_attempts} sessions={self._sessions_opened} "
            f"received={self._messages_received} delivered={self._messages_delivered} "
            f"handler_errors={self._handler_errors}"
        )

    @property
    def stats(self) -> dict:
        return {
            "url": self._url,
            "transport": self._transport.transport_name,
            "state": self.state.value,
            "running": self.is_running,
            "connect_attempts": self._connect_attempts,
            "reconnect_count": self._reconnect_count,
            "sessions_opened": self._sessions_opened,
            "consecutive_failures": self._policy.failures,
            "circuit_opens": self._policy.circuit_opens,
            "messages_received": self._messages_received,
            "messages_delivered": self._messages_delivered,
            "handler_errors": self._handler_errors,
            "queue_depth": self._queue.qsize(),
            "last_message_at": self._last_message_at,
        }

    def health_check(self) -> dict:
        """Health check para monitoreo."""
        return {
            "healthy": self.is_connected,
            "running": self.is_running,
            "state": self.state.value,
            "messages_received": self._messages_received,
            "handler_errors": self._handler_errors,
            "last_message_age_seconds": (
                time.time() - self._last_message_at if self._last_message_at > 0 else None
            ),
        }
