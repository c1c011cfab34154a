"""
Contrats des collaborateurs externes du moteur (stockage, calendrier, météo)

Le moteur ne dépend que de ces interfaces; les implémentations concrètes
(API, base de données, fichiers) sont injectées.
"""
from datetime import date
from typing import Optional, Protocol, Union

from models.activity import Activity
from models.athlete import AthleteProfile
from models.context import WeatherReading
from models.feedback import DailyFeedback, RaceFeedback, DNFEvent
from models.race import Race, CalendarEvent


class ActivityStore(Protocol):
    """Journal d'activités"""

    def get_activities(self, start: date, end: date) -> list[Activity]:
        """Activités dont la date est comprise entre start et end (inclus)"""
        ...


class CalendarStore(Protocol):
    def get_races(self) -> list[Race]: ...

    def get_events(self) -> list[CalendarEvent]: ...


class ClimateProvider(Protocol):
    """Doit tolérer les pannes: le moteur remplace toute erreur par une valeur par défaut"""

    def get_weather(self, lat: float, lon: float, day: date) -> WeatherReading: ...


class ProfileStore(Protocol):
    def get_profile(self, athlete_id: str) -> Optional[AthleteProfile]: ...


class FeedbackStore(Protocol):
    """Journal des retours, en ajout seul"""

    def append(self, event: Union[DailyFeedback, RaceFeedback, DNFEvent]) -> None: ...

    def daily_feedback(self, athlete_id: str, start: date, end: date) -> list[DailyFeedback]: ...

    def race_feedback(self, athlete_id: str) -> list[RaceFeedback]: ...

    def dnf_events(self, athlete_id: str) -> list[DNFEvent]: ...
