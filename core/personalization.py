"""
Registre des modèles de personnalisation par athlète
"""
import threading
from typing import Optional, Sequence

from loguru import logger

from core.bayesian import BayesianModel, initialize_model, update_model


class _AthleteQueue:
    """File à tickets: les mises à jour passent dans l'ordre d'arrivée"""

    def __init__(self):
        self.condition = threading.Condition()
        self.next_ticket = 0
        self.serving = 0


class PersonalizationRegistry:
    """
    Conserve un modèle bayésien par (athlète, nom de modèle)

    Les mises à jour d'un même athlète sont appliquées une à une, dans
    l'ordre d'arrivée (ticket pris à l'entrée de update). Deux athlètes
    différents ne se bloquent pas.
    """

    def __init__(self, feature_count: int = 1):
        self.feature_count = feature_count
        self._models: dict[tuple[str, str], BayesianModel] = {}
        self._queues: dict[str, _AthleteQueue] = {}
        self._registry_lock = threading.Lock()

    def _queue_for(self, athlete_id: str) -> _AthleteQueue:
        with self._registry_lock:
            queue = self._queues.get(athlete_id)
            if queue is None:
                queue = _AthleteQueue()
                self._queues[athlete_id] = queue
            return queue

    def get(self, athlete_id: str, model_name: str) -> Optional[BayesianModel]:
        return self._models.get((athlete_id, model_name))

    def pending(self, athlete_id: str) -> int:
        """Mises à jour en cours ou en attente pour l'athlète"""
        queue = self._queue_for(athlete_id)
        with queue.condition:
            return queue.next_ticket - queue.serving

    def update(
        self,
        athlete_id: str,
        model_name: str,
        features: Sequence[float],
        target: float,
        weight: float = 1.0
    ) -> BayesianModel:
        """
        Applique une observation au modèle de l'athlète (créé si absent)

        Returns:
            Le nouveau modèle enregistré
        """
        queue = self._queue_for(athlete_id)
        with queue.condition:
            ticket = queue.next_ticket
            queue.next_ticket += 1
            while queue.serving != ticket:
                queue.condition.wait()

        try:
            current = self._models.get((athlete_id, model_name))
            if current is None:
                current = initialize_model(len(features) or self.feature_count)
            updated = update_model(current, features, target, weight)
            self._models[(athlete_id, model_name)] = updated
        finally:
            with queue.condition:
                queue.serving += 1
                queue.condition.notify_all()

        logger.debug(f"Modèle {model_name} de {athlete_id}: {updated.observations} observation(s)")
        return updated

    def models_for(self, athlete_id: str) -> dict[str, BayesianModel]:
        return {name: m for (aid, name), m in list(self._models.items()) if aid == athlete_id}
