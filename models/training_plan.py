"""
Modèle de données pour le plan d'entraînement hebdomadaire
"""
from pydantic import BaseModel, Field, model_validator
from datetime import date, timedelta
from typing import Optional
from enum import Enum

from .errors import PlanLengthError, WeekAlignmentError, RestDayViolationError


class TrainingPhase(str, Enum):
    """Phases d'un cycle d'entraînement"""
    BASE = "base"
    BUILD = "build"
    PEAK = "peak"
    TAPER = "taper"
    RACE_WEEK = "race_week"
    RECOVERY = "recovery"
    MAINTENANCE = "maintenance"


class SessionType(str, Enum):
    """Types de séances"""
    EASY = "easy"
    LONG_RUN = "long_run"
    TEMPO = "tempo"
    INTERVALS = "intervals"
    HILLS = "hills"
    STRIDES = "strides"
    STRENGTH = "strength"
    RECOVERY = "recovery"
    RACE = "race"
    REST = "rest"


class Session(BaseModel):
    """Une séance planifiée"""
    type: SessionType
    title: str = Field(..., description="Titre court (ex: 'Sortie longue 22 km')")
    distance_km: Optional[float] = Field(None, ge=0)
    duration_min: Optional[float] = Field(None, ge=0)
    intensity_zones: list[str] = Field(default_factory=list, description="Zones visées (ex: ['Z2'])")
    vertical_gain_m: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None

    def is_rest(self) -> bool:
        return self.type == SessionType.REST


class DailyPlan(BaseModel):
    """Une journée du plan (zéro séance = repos)"""
    date: date
    day_of_week: int = Field(..., ge=1, le=7, description="1=lundi")
    sessions: list[Session] = Field(default_factory=list)

    @property
    def is_rest_day(self) -> bool:
        return all(s.is_rest() for s in self.sessions)

    def total_distance(self) -> float:
        return sum(s.distance_km or 0 for s in self.sessions)


class WeeklyPlan(BaseModel):
    """Plan d'une semaine: exactement 7 jours, du lundi au dimanche"""
    week_start: date = Field(..., description="Lundi de la semaine")
    phase: TrainingPhase
    days: list[DailyPlan]
    rest_days: list[int] = Field(default_factory=list, description="Jours de repos imposés")

    target_distance_km: float = 0.0
    target_vertical_m: float = 0.0
    is_recovery_week: bool = False
    notes: list[str] = Field(default_factory=list)

    @model_validator(mode='after')
    def check_structure(self):
        check_week_structure(self.week_start, self.days, self.rest_days)
        return self

    def get_day(self, day_of_week: int) -> DailyPlan:
        """Récupère la journée (1=lundi)"""
        return self.days[day_of_week - 1]

    def all_sessions(self) -> list[Session]:
        return [s for d in self.days for s in d.sessions]

    def get_total_volume(self) -> float:
        """Volume total planifié (km)"""
        return round(sum(d.total_distance() for d in self.days), 1)

    def get_total_vertical(self) -> float:
        return round(sum(s.vertical_gain_m or 0 for s in self.all_sessions()), 0)

    def training_days(self) -> list[int]:
        return [d.day_of_week for d in self.days if not d.is_rest_day]


def check_week_structure(week_start: date, days: list[DailyPlan], rest_days: list[int]):
    """
    Vérifie les invariants structurels d'une semaine

    Raises:
        PlanLengthError: si la semaine n'a pas 7 jours
        WeekAlignmentError: si elle ne démarre pas un lundi ou si les dates sautent
        RestDayViolationError: si une séance tombe sur un jour de repos imposé
    """
    if len(days) != 7:
        raise PlanLengthError(f"Un plan hebdomadaire doit contenir 7 jours, reçu {len(days)}")
    if week_start.weekday() != 0:
        raise WeekAlignmentError(f"La semaine doit commencer un lundi: {week_start.isoformat()}")
    for index, day in enumerate(days):
        expected = week_start + timedelta(days=index)
        if day.date != expected or day.day_of_week != index + 1:
            raise WeekAlignmentError(
                f"Jour {index + 1} incohérent: {day.date.isoformat()} (attendu {expected.isoformat()})"
            )
        if day.day_of_week in rest_days and day.sessions:
            raise RestDayViolationError(
                f"{len(day.sessions)} séance(s) programmée(s) sur le jour de repos {day.day_of_week}"
            )


def get_monday(d: date) -> date:
    """Retourne le lundi de la semaine de d"""
    return d - timedelta(days=d.weekday())


def create_week_dates(week_start: date) -> list[date]:
    """
    Crée les 7 dates d'une semaine

    Args:
        week_start: Date de début (sera alignée sur le lundi)

    Returns:
        Liste des 7 dates du lundi au dimanche
    """
    monday = get_monday(week_start)
    return [monday + timedelta(days=i) for i in range(7)]


def empty_week(week_start: date) -> list[DailyPlan]:
    """Squelette de 7 journées vides"""
    return [
        DailyPlan(date=day, day_of_week=index + 1)
        for index, day in enumerate(create_week_dates(week_start))
    ]
