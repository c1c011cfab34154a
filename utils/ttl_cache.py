"""Cache à durée de vie courte avec regroupement des requêtes concurrentes."""

import threading
import time
from concurrent.futures import Future
from typing import Any, Callable, Hashable, Optional

from loguru import logger

from config.settings import REQUEST_CACHE_TTL_SECONDS


class CacheClosedError(RuntimeError):
    """Le cache a été fermé en fin de session"""


class TTLCache:
    """
    Cache explicite (créé en début de session, fermé en fin de session).

    Les appels concurrents sur une même clé partagent un seul chargement
    en cours. Les échecs ne sont jamais mis en cache; les entrées expirées
    sont évincées à chaque insertion.
    """

    def __init__(
        self,
        ttl_seconds: float = REQUEST_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[Hashable, tuple[Any, float]] = {}
        self._in_flight: dict[Hashable, Future] = {}
        self._closed = False
        self.loads = 0

    def get_or_load(
        self,
        key: Hashable,
        loader: Callable[[], Any],
        timeout: Optional[float] = None
    ) -> Any:
        """
        Retourne la valeur en cache ou la charge une seule fois

        Args:
            key: Clé construite à partir des paramètres de la requête
            loader: Fonction de chargement (appel externe)
            timeout: Attente max (s) pour un chargement déjà en cours

        Raises:
            concurrent.futures.TimeoutError: si le chargement partagé dépasse timeout
        """
        with self._lock:
            if self._closed:
                raise CacheClosedError("Cache fermé")
            entry = self._entries.get(key)
            if entry is not None:
                value, expires_at = entry
                if expires_at > self._clock():
                    return value
                del self._entries[key]

            future = self._in_flight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._in_flight[key] = future

        if not owner:
            logger.debug(f"Requête regroupée sur un chargement en cours: {key}")
            return future.result(timeout=timeout)

        try:
            value = loader()
        except Exception as exc:
            with self._lock:
                self._in_flight.pop(key, None)
            future.set_exception(exc)
            raise

        with self._lock:
            self.loads += 1
            self._in_flight.pop(key, None)
            if not self._closed:
                now = self._clock()
                self._evict_expired(now)
                self._entries[key] = (value, now + self.ttl_seconds)
        future.set_result(value)
        return value

    def invalidate(self, key: Hashable):
        with self._lock:
            self._entries.pop(key, None)

    def _evict_expired(self, now: float) -> int:
        # appelé verrou tenu
        expired = [k for k, (_, exp) in self._entries.items() if exp <= now]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def purge_expired(self) -> int:
        """Supprime les entrées expirées, retourne le nombre supprimé"""
        now = self._clock()
        with self._lock:
            return self._evict_expired(now)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def close(self):
        """Fin de session: vide le cache et refuse les nouveaux appels"""
        with self._lock:
            self._entries.clear()
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
