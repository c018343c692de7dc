"""Estados y política de reconexión del ConnectionManager.

Backoff exponencial con jitter y circuito que se abre tras demasiados
intentos consecutivos fallidos. El circuito nunca detiene el proceso:
tras el cooldown empieza una nueva serie de intentos.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ConnectionState(str, Enum):
    """Estados de la conexión."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    STOPPING = "stopping"


@dataclass
class ReconnectConfig:
    """Configuración de reconexión."""
    base_delay: float = 2.0  # segundos
    max_delay: float = 60.0  # segundos
    exponential_base: float = 2.0
    max_attempts: int = 20
    cooldown_seconds: float = 300.0
    jitter: bool = True
    stable_seconds: float = 30.0  # vida mínima de una sesión sin mensajes para contar como éxito

    def calculate_delay(self, attempt: int) -> float:
        """Calcula el delay antes del intento dado.

        Args:
            attempt: Número de fallo consecutivo (1-indexed)

        Returns:
            Delay en segundos
        """
        delay = self.base_delay * (self.exponential_base ** (attempt - 1))
        delay = min(delay, self.max_delay)

        if self.jitter:
            jitter_range = delay * 0.25
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0.0, delay)


@dataclass(frozen=True)
class ReconnectDecision:
    """Próximo paso tras un fallo o cierre."""
    delay: float
    attempt: int
    circuit_opened: bool = False


class ReconnectPolicy:
    """Cuenta fallos consecutivos y decide cuánto esperar.

    Uso:
        policy = ReconnectPolicy(config)
        decision = policy.next_attempt()   # tras un fallo o cierre
        policy.reset()                     # tras una sesión que entregó datos
    """

    def __init__(self, config: Optional[ReconnectConfig] = None):
        self._config = config or ReconnectConfig()
        self._failures = 0
        self._circuit_opens = 0

    @property
    def config(self) -> ReconnectConfig:
        return self._config

    @property
    def failures(self) -> int:
        return self._failures

    @property
    def circuit_opens(self) -> int:
        return self._circuit_opens

    def next_attempt(self) -> ReconnectDecision:
        """Registra un fallo y decide el delay antes del siguiente intento.

        Al alcanzar max_attempts se abre el circuito: el delay es el
        cooldown y la serie de intentos vuelve a empezar.
        """
        self._failures += 1
        attempt = self._failures
        if self._config.max_attempts > 0 and attempt >= self._config.max_attempts:
            self._circuit_opens += 1
            self._failures = 0
            return ReconnectDecision(
                delay=self._config.cooldown_seconds,
                attempt=attempt,
                circuit_opened=True,
            )
        return ReconnectDecision(delay=self._config.calculate_delay(attempt), attempt=attempt)

    def reset(self) -> None:
        self._failures = 0
