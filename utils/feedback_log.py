"""Journal des retours athlète au format JSON Lines (ajout seul)."""

import threading
from pathlib import Path
from datetime import date
from typing import Annotated, Optional, Union

from pydantic import Field, TypeAdapter
from loguru import logger

from config.settings import FEEDBACK_LOG_FILE
from models.feedback import DailyFeedback, RaceFeedback, DNFEvent


_EVENT_ADAPTER = TypeAdapter(
    Annotated[Union[DailyFeedback, RaceFeedback, DNFEvent], Field(discriminator="kind")]
)


class JsonlFeedbackStore:
    """
    Une ligne JSON par retour, dans l'ordre d'arrivée

    Les lignes illisibles sont ignorées à la lecture (avec un avertissement).
    """

    def __init__(self, filepath: Optional[Union[str, Path]] = None):
        self.path = Path(filepath or FEEDBACK_LOG_FILE)
        self._lock = threading.Lock()

    def append(self, event: Union[DailyFeedback, RaceFeedback, DNFEvent]) -> None:
        """
        Ajoute un retour en fin de fichier

        Args:
            event: Retour quotidien, de course ou abandon
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        line = event.model_dump_json()
        with self._lock:
            with open(self.path, 'a', encoding='utf-8') as f:
                f.write(line + "\n")

    def load_all(self) -> list[Union[DailyFeedback, RaceFeedback, DNFEvent]]:
        if not self.path.exists():
            return []

        events = []
        with open(self.path, 'r', encoding='utf-8') as f:
            for number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    events.append(_EVENT_ADAPTER.validate_json(line))
                except ValueError as exc:
                    logger.warning(f"Ligne {number} ignorée dans {self.path.name}: {exc}")
        return events

    def daily_feedback(self, athlete_id: str, start: date, end: date) -> list[DailyFeedback]:
        return [
            e for e in self.load_all()
            if isinstance(e, DailyFeedback) and e.athlete_id == athlete_id and start <= e.feedback_date <= end
        ]

    def race_feedback(self, athlete_id: str) -> list[RaceFeedback]:
        return [e for e in self.load_all() if isinstance(e, RaceFeedback) and e.athlete_id == athlete_id]

    def dnf_events(self, athlete_id: str) -> list[DNFEvent]:
        return [e for e in self.load_all() if isinstance(e, DNFEvent) and e.athlete_id == athlete_id]
