"""
Conversion d'un plan hebdomadaire en workouts exportables
"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from core.plan_validator import validate_workout_parity
from models.training_plan import Session, SessionType, WeeklyPlan


class Workout(BaseModel):
    """Représentation externe d'une séance"""
    model_config = ConfigDict(frozen=True)

    session_key: str = Field(..., description="Identifiant de la séance source: date#index")
    workout_date: date
    day_of_week: int
    type: SessionType
    title: str
    distance_km: Optional[float] = None
    duration_min: Optional[float] = None
    vertical_gain_m: Optional[float] = None
    intensity_zones: list[str] = Field(default_factory=list)


def session_key(day: date, index: int) -> str:
    return f"{day.isoformat()}#{index}"


def session_to_workout(session: Session, day: date, day_of_week: int, index: int) -> Workout:
    return Workout(
        session_key=session_key(day, index),
        workout_date=day,
        day_of_week=day_of_week,
        type=session.type,
        title=session.title,
        distance_km=session.distance_km,
        duration_min=session.duration_min,
        vertical_gain_m=session.vertical_gain_m,
        intensity_zones=list(session.intensity_zones)
    )


def convert_plan_to_workouts(plan: WeeklyPlan) -> list[Workout]:
    """
    Une séance -> au plus un workout

    Les séances de repos sont abandonnées; aucune séance n'est dupliquée.

    Raises:
        WorkoutParityError: si la conversion produit plus de workouts que de séances
    """
    workouts = [
        session_to_workout(session, day.date, day.day_of_week, index)
        for day in plan.days
        for index, session in enumerate(day.sessions)
        if not session.is_rest()
    ]
    validate_workout_parity(plan, [w.session_key for w in workouts])
    return workouts
