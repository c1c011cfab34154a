"""
Validation des invariants structurels d'un plan hebdomadaire

Toute violation est fatale: les consommateurs en aval supposent ces
invariants sans les revérifier.
"""
from typing import Iterable, Optional, Sequence

from loguru import logger

from models.errors import WorkoutParityError
from models.training_plan import WeeklyPlan, check_week_structure


def validate_weekly_plan(plan: WeeklyPlan, rest_days: Optional[Iterable[int]] = None) -> WeeklyPlan:
    """
    Revérifie un plan (les listes de séances restent modifiables après construction)

    Args:
        plan: Plan à vérifier
        rest_days: Jours de repos imposés à contrôler en plus de plan.rest_days

    Returns:
        Le plan, inchangé

    Raises:
        PlanLengthError, WeekAlignmentError, RestDayViolationError
    """
    hard_rest = set(plan.rest_days) | set(rest_days or [])
    check_week_structure(plan.week_start, plan.days, sorted(hard_rest))
    return plan


def validate_workout_parity(plan: WeeklyPlan, workout_session_keys: Sequence[str]) -> None:
    """
    Vérifie la correspondance séances -> workouts

    Chaque workout doit provenir d'une séance distincte du plan; une séance
    peut être abandonnée (repos) mais jamais dupliquée.

    Raises:
        WorkoutParityError
    """
    session_count = len(plan.all_sessions())
    if len(workout_session_keys) > session_count:
        raise WorkoutParityError(
            f"{len(workout_session_keys)} workouts pour {session_count} séances"
        )
    duplicates = {k for k in workout_session_keys if list(workout_session_keys).count(k) > 1}
    if duplicates:
        raise WorkoutParityError(f"Séances dupliquées dans la conversion: {sorted(duplicates)}")

    dropped = session_count - len(workout_session_keys)
    if dropped:
        logger.debug(f"{dropped} séance(s) de repos non converties")
