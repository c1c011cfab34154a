"""
Modèle de données pour les courses et événements du calendrier
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import date
from typing import Optional
from enum import Enum


class RacePriority(str, Enum):
    """Priorité d'une course (A = objectif principal)"""
    A = "A"
    B = "B"
    C = "C"


class RaceType(str, Enum):
    MARATHON = "Marathon"
    HALF_MARATHON = "HalfMarathon"
    HUNDRED_MILES = "100M"
    HUNDRED_K = "100K"
    FIFTY_MILES = "50M"
    FIFTY_K = "50K"
    CUSTOM = "Custom"


def parse_expected_time(value: Optional[str]) -> Optional[float]:
    """
    Convertit un temps prévu "HH:MM" (ou "HH:MM:SS") en minutes

    Returns:
        Minutes, ou None si absent/illisible
    """
    if not value:
        return None
    parts = value.strip().split(':')
    try:
        numbers = [int(p) for p in parts]
    except ValueError:
        return None
    if len(numbers) == 2:
        return numbers[0] * 60 + numbers[1]
    if len(numbers) == 3:
        return numbers[0] * 60 + numbers[1] + numbers[2] / 60
    return None


class _TimedEntry(BaseModel):
    """Champs communs aux courses et événements"""
    model_config = ConfigDict(frozen=True)

    name: str
    event_date: date
    distance_km: Optional[float] = Field(None, ge=0)
    elevation_gain_m: Optional[float] = Field(None, ge=0)
    expected_time: Optional[str] = Field(None, description="Temps prévu HH:MM")

    @field_validator('expected_time')
    @classmethod
    def validate_expected_time(cls, v):
        """Valide le format HH:MM"""
        if v is not None and parse_expected_time(v) is None:
            raise ValueError(f"Format de temps invalide: {v}. Utilisez HH:MM (ex: '03:45')")
        return v

    @property
    def expected_minutes(self) -> Optional[float]:
        return parse_expected_time(self.expected_time)


class Race(_TimedEntry):
    """Course inscrite par l'athlète"""
    priority: RacePriority = RacePriority.C
    location: Optional[str] = None


class CalendarEvent(_TimedEntry):
    """Événement générique du calendrier"""
    event_type: str = Field("race", description="Type ('race', 'training_camp'...)")
    priority: RacePriority = RacePriority.B

    def is_race(self) -> bool:
        return self.event_type.lower() == "race"


class RaceEntry(BaseModel):
    """Entrée normalisée du calendrier de courses fusionné"""
    model_config = ConfigDict(frozen=True)

    name: str
    event_date: date
    distance_km: float
    elevation_gain_m: float = 0.0
    priority: RacePriority
    expected_minutes: Optional[float] = None
    race_type: RaceType = RaceType.CUSTOM
    terrain: str = "road"
    source: str = Field("race", description="'race' ou 'event'")
