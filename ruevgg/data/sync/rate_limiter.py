"""Rate limiter à double fenêtre pour l'API Riot.

Chaque requête sortante consomme un jeton dans DEUX seaux indépendants :
- un seau court terme (ex: 20 requêtes / 1 s)
- un seau long terme (ex: 100 requêtes / 120 s)

La recharge est un reset complet (pas de remplissage progressif) : dès que
la fenêtre d'un seau est écoulée, il retrouve sa capacité maximale.

Usage:
    limiter = DualWindowRateLimiter()
    await limiter.acquire()
    # ... requête HTTP ...
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Attente minimale entre deux réévaluations (évite le busy-loop)
MIN_SLEEP_SECONDS = 0.05


@dataclass
class TokenBucket:
    """Seau de jetons à recharge par reset complet."""

    capacity: int
    window: float
    tokens: int
    last_reset: float

    def refill(self, now: float) -> None:
        if now - self.last_reset >= self.window:
            self.tokens = self.capacity
            self.last_reset = now

    def time_until_reset(self, now: float) -> float:
        return max(0.0, self.window - (now - self.last_reset))


class DualWindowRateLimiter:
    """Porte d'entrée unique de toutes les requêtes d'une analyse.

    `acquire()` n'échoue jamais : il attend. Les appelants sont servis dans
    l'ordre d'arrivée (verrou asyncio FIFO) ; annuler la tâche en attente
    (ou l'envelopper dans `asyncio.wait_for`) abandonne proprement l'attente.
    """

    def __init__(
        self,
        short_term_limit: int = 20,
        short_term_window: float = 1.0,
        long_term_limit: int = 100,
        long_term_window: float = 120.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if short_term_limit <= 0 or long_term_limit <= 0:
            raise ValueError("Les capacités des seaux doivent être positives")
        if short_term_window <= 0 or long_term_window <= 0:
            raise ValueError("Les fenêtres des seaux doivent être positives")

        self._clock = clock
        self._sleep = sleep
        now = clock()
        self._short = TokenBucket(short_term_limit, short_term_window, short_term_limit, now)
        self._long = TokenBucket(long_term_limit, long_term_window, long_term_limit, now)
        self._lock = asyncio.Lock()
        self.total_acquired = 0

    @property
    def short_term_tokens(self) -> int:
        return self._short.tokens

    @property
    def long_term_tokens(self) -> int:
        return self._long.tokens

    async def acquire(self) -> None:
        """Attend qu'un jeton soit disponible dans les deux seaux puis le consomme."""
        async with self._lock:
            while True:
                now = self._clock()
                self._short.refill(now)
                self._long.refill(now)

                if self._short.tokens > 0 and self._long.tokens > 0:
                    self._short.tokens -= 1
                    self._long.tokens -= 1
                    self.total_acquired += 1
                    return

                short_wait = self._short.time_until_reset(now) if self._short.tokens <= 0 else 0.0
                long_wait = self._long.time_until_reset(now) if self._long.tokens <= 0 else 0.0
                wait = max(short_wait, long_wait, MIN_SLEEP_SECONDS)
                logger.debug(
                    f"Rate limit atteint (court={self._short.tokens}, "
                    f"long={self._long.tokens}), attente {wait:.2f}s"
                )
                await self._sleep(wait)


__all__ = ["DualWindowRateLimiter", "TokenBucket", "MIN_SLEEP_SECONDS"]
