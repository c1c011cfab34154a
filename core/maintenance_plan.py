"""
Générateur de plan d'entretien (aucune course au calendrier)
"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field
from loguru import logger

from core.session_builder import (
    choose_training_days, assign_roles, allocate_distances, build_run, build_strength,
    distribute_vertical, pick_strength_day, assemble_week
)
from models.athlete import AthleteProfile, TrainingConstraints
from models.training_plan import SessionType, TrainingPhase, WeeklyPlan, get_monday


EASY_SHARE = 0.80
LONG_RUN_SHARE = 0.30
LONG_RUN_CAP_KM = 25.0

MAINTENANCE_ROLES = [
    SessionType.LONG_RUN, SessionType.TEMPO, SessionType.EASY, SessionType.EASY,
    SessionType.EASY, SessionType.EASY, SessionType.EASY,
]
MAINTENANCE_ROLES_EASY_ONLY = [
    SessionType.LONG_RUN, SessionType.EASY, SessionType.EASY, SessionType.EASY,
    SessionType.EASY, SessionType.EASY, SessionType.EASY,
]


class VolumeBreakdown(BaseModel):
    """Répartition du volume d'entretien"""
    total_km: float
    easy_km: float
    quality_km: float
    long_run_km: float
    strength_sessions: int = 0


class MaintenancePlanResult(BaseModel):
    plan: WeeklyPlan
    volume_breakdown: VolumeBreakdown
    explanation: list[str] = Field(default_factory=list)


def generate_maintenance_plan(
    athlete: AthleteProfile,
    target_weekly_volume: Optional[float] = None,
    prefer_long_run_day: Optional[int] = None,
    week_start: Optional[date] = None,
    constraints: Optional[TrainingConstraints] = None,
    include_workouts: bool = True,
    include_strength: bool = True
) -> MaintenancePlanResult:
    """
    Génère une semaine d'entretien

    Répartition 80 % facile / 20 % qualité, sortie longue = min(30 %, 25 km)
    ancrée sur le jour préféré, footings pour le reste. Les jours de repos
    imposés ne reçoivent jamais de séance.

    Args:
        athlete: Profil athlète
        target_weekly_volume: Volume cible (défaut: volume de référence)
        prefer_long_run_day: Jour de sortie longue (1=lundi, défaut contrainte)
        week_start: Semaine visée (alignée au lundi)
        constraints: Contraintes (défaut: celles du profil)
        include_workouts: Injecter une séance tempo
        include_strength: Ajouter un renforcement à un footing de milieu de semaine

    Returns:
        MaintenancePlanResult
    """
    constraints = constraints or athlete.constraints
    rest_days = constraints.resolved_rest_days()
    available = [d for d in range(1, 8) if d not in rest_days]
    volume = round(target_weekly_volume or athlete.baseline_weekly_km, 1)
    anchor = prefer_long_run_day or constraints.long_run_day
    monday = get_monday(week_start or date.today())

    roles = MAINTENANCE_ROLES if include_workouts else MAINTENANCE_ROLES_EASY_ONLY
    days = choose_training_days(available, constraints.training_days_count(), anchor)
    roles = roles[:len(days)]
    assignment = assign_roles(days, roles)

    ordered_days = list(assignment.keys())
    quality_share = 1 - EASY_SHARE
    distances = allocate_distances(
        [assignment[d] for d in ordered_days], volume, LONG_RUN_SHARE, LONG_RUN_CAP_KM, quality_share
    )

    runs = [build_run(assignment[d], km, athlete) for d, km in zip(ordered_days, distances)]
    runs = distribute_vertical(runs, athlete.estimated_weekly_vertical() * volume / athlete.baseline_weekly_km)
    sessions_by_day = {d: [run] for d, run in zip(ordered_days, runs)}

    strength_sessions = 0
    if include_strength:
        strength_day = pick_strength_day(assignment)
        if strength_day:
            sessions_by_day[strength_day].append(build_strength())
            strength_sessions = 1

    long_km = sum(r.distance_km for r in runs if r.type == SessionType.LONG_RUN)
    quality_km = sum(r.distance_km for r in runs if r.type == SessionType.TEMPO)
    easy_km = round(sum(r.distance_km for r in runs) - quality_km, 1)
    breakdown = VolumeBreakdown(
        total_km=round(sum(r.distance_km for r in runs), 1),
        easy_km=easy_km,
        quality_km=round(quality_km, 1),
        long_run_km=round(long_km, 1),
        strength_sessions=strength_sessions
    )

    explanation = [
        f"Entretien sans course: {volume:.1f} km sur {len(days)} jour(s)",
        f"Sortie longue {breakdown.long_run_km:.1f} km (jour {days[0]})" if days else "Aucun jour disponible",
    ]
    if rest_days:
        explanation.append(f"Jours de repos respectés: {rest_days}")
    if include_workouts and quality_km:
        explanation.append(f"Séance tempo {breakdown.quality_km:.1f} km (20 % du volume)")

    logger.debug(f"Plan d'entretien du {monday}: {volume} km, jours {sorted(days)}")
    plan = assemble_week(
        monday, TrainingPhase.MAINTENANCE, sessions_by_day, rest_days,
        volume, sum(r.vertical_gain_m or 0 for r in runs), False, explanation
    )
    return MaintenancePlanResult(plan=plan, volume_breakdown=breakdown, explanation=explanation)
