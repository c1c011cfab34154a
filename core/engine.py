"""
Moteur de décision: contexte -> phase -> plan de la semaine
"""
from datetime import date, datetime
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from loguru import logger

from core.context_aggregator import ContextAggregator, AthleteLocation
from core.load_analyzer import get_adaptation_scale
from core.maintenance_plan import generate_maintenance_plan
from core.microcycle import MicrocycleGenerator
from core.motivation import OnboardingResponses
from core.phase import determine_phase
from models.adjustments import MicroAdjustment
from models.context import AdaptiveContext, Provenance
from models.errors import AthleteNotFoundError
from models.training_plan import TrainingPhase, WeeklyPlan, get_monday
from services.collaborators import ProfileStore
from utils.workout_conversion import Workout, convert_plan_to_workouts


MIN_VOLUME_SCALE = 0.5
MAX_VOLUME_SCALE = 1.2


class PlanDecision(BaseModel):
    """Résultat d'un cycle de décision"""
    model_config = ConfigDict(frozen=True)

    context: AdaptiveContext
    phase: TrainingPhase
    generator: str
    volume_scale: float
    plan: WeeklyPlan
    workouts: list[Workout] = Field(default_factory=list)
    explanation: list[str] = Field(default_factory=list)


def combine_volume_scale(context: AdaptiveContext, adjustments: Sequence[MicroAdjustment] = ()) -> tuple[float, list[str]]:
    """
    Facteur de volume issu de l'ACWR (si mesuré) et des ajustements en attente

    Returns:
        (facteur borné à [0.5, 1.2], raisons)
    """
    scale = 1.0
    reasons = []
    if context.acwr.provenance == Provenance.REAL:
        adaptation = get_adaptation_scale(context.acwr.ratio)
        scale *= adaptation.scale
        reasons.append(adaptation.reason)

    for adjustment in adjustments:
        if adjustment.volume_change_percent:
            scale *= 1 + adjustment.volume_change_percent / 100
            reasons.append(f"Feedback: volume {adjustment.volume_change_percent:+.0f}%")

    return round(min(max(scale, MIN_VOLUME_SCALE), MAX_VOLUME_SCALE), 3), reasons


class TrainingDecisionEngine:
    """
    Orchestration d'un cycle de planification

    Exactement un générateur est appelé par cycle: maintenance sans course
    au calendrier, microcycle sinon.
    """

    def __init__(self, profile_store: ProfileStore, aggregator: ContextAggregator):
        self.profile_store = profile_store
        self.aggregator = aggregator

    def plan_week(
        self,
        athlete_id: str,
        reference: Optional[date] = None,
        location: Optional[AthleteLocation] = None,
        onboarding: Optional[OnboardingResponses] = None,
        adjustments: Sequence[MicroAdjustment] = (),
        week_number: int = 1,
        previous_week_km: Optional[float] = None,
        now: Optional[datetime] = None
    ) -> PlanDecision:
        """
        Planifie la semaine contenant la date de référence

        Args:
            athlete_id: Identifiant athlète
            reference: Date de référence (défaut: aujourd'hui)
            location: Position courante (météo)
            onboarding: Réponses d'accueil (motivation)
            adjustments: Micro-ajustements issus des derniers retours
            week_number: Rang de la semaine dans le bloc (semaines allégées)
            previous_week_km: Volume réalisé la semaine précédente
            now: Horodatage du contexte

        Returns:
            PlanDecision

        Raises:
            AthleteNotFoundError: profil inconnu
            PlanInvariantError: plan structurellement invalide
        """
        athlete = self.profile_store.get_profile(athlete_id)
        if athlete is None:
            raise AthleteNotFoundError(f"Profil introuvable: {athlete_id}")

        reference = reference or date.today()
        context = self.aggregator.build(athlete, reference, location=location, onboarding=onboarding, now=now)
        days_to_race = context.races.days_to_main_race if context.races.has_race() else None
        phase = determine_phase(days_to_race)
        scale, explanation = combine_volume_scale(context, adjustments)
        week_start = get_monday(reference)

        if phase == TrainingPhase.MAINTENANCE:
            generator = "maintenance"
            result = generate_maintenance_plan(
                athlete,
                target_weekly_volume=round(athlete.baseline_weekly_km * scale, 1),
                week_start=week_start
            )
            plan = result.plan
            explanation += result.explanation
        else:
            generator = "microcycle"
            plan = MicrocycleGenerator(athlete).generate(
                phase, context.races.main_race, days_to_race, week_start,
                week_number, previous_week_km, scale
            )
            explanation += plan.notes

        workouts = convert_plan_to_workouts(plan)
        logger.info(
            f"Semaine du {week_start} pour {athlete_id}: phase {phase.value} ({generator}), "
            f"{plan.get_total_volume():.1f} km, {len(workouts)} workout(s)"
        )
        return PlanDecision(
            context=context,
            phase=phase,
            generator=generator,
            volume_scale=scale,
            plan=plan,
            workouts=workouts,
            explanation=explanation
        )
