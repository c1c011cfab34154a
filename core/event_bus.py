"""
Bus d'événements publish/subscribe injecté dans les composants
"""
import threading
from collections import defaultdict, deque
from typing import Callable

from pydantic import BaseModel
from loguru import logger

from config.settings import EVENT_HISTORY_SIZE
from models.events import EngineEvent, EVENT_PAYLOADS


Handler = Callable[[BaseModel], None]


class EventBus:
    """
    Diffusion synchrone et typée

    Chaque canal n'accepte que son modèle de payload. Les abonnés sont
    appelés dans l'ordre d'abonnement; une exception d'abonné est
    journalisée puis propagée à l'émetteur. Seuls les derniers payloads
    publiés sont conservés (history_size).
    """

    def __init__(self, history_size: int = EVENT_HISTORY_SIZE):
        self._handlers: dict[EngineEvent, list[Handler]] = defaultdict(list)
        self._lock = threading.Lock()
        self.published: deque[tuple[EngineEvent, BaseModel]] = deque(maxlen=history_size)

    def subscribe(self, event: EngineEvent, handler: Handler) -> None:
        with self._lock:
            self._handlers[event].append(handler)

    def unsubscribe(self, event: EngineEvent, handler: Handler) -> None:
        with self._lock:
            if handler in self._handlers[event]:
                self._handlers[event].remove(handler)

    def publish(self, event: EngineEvent, payload: BaseModel) -> None:
        """
        Publie un payload sur un canal

        Raises:
            TypeError: payload d'un type différent de celui attendu par le canal
        """
        expected = EVENT_PAYLOADS[event]
        if not isinstance(payload, expected):
            raise TypeError(f"{event.value} attend {expected.__name__}, reçu {type(payload).__name__}")

        with self._lock:
            handlers = list(self._handlers[event])
            self.published.append((event, payload))

        logger.debug(f"Événement {event.value} -> {len(handlers)} abonné(s)")
        for handler in handlers:
            try:
                handler(payload)
            except Exception:
                logger.exception(f"Échec d'un abonné sur {event.value}")
                raise

    def history(self, event: EngineEvent) -> list[BaseModel]:
        """Payloads récents publiés sur un canal"""
        with self._lock:
            return [p for e, p in self.published if e == event]
