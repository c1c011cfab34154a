"""
Génération des ajustements de plan à partir des retours

- micro: retour quotidien, horizon 7 jours
- macro: retour de course, horizon 8 semaines
- protocole de reprise: abandon, 2 semaines à 40 % puis 60 %
"""
from datetime import timedelta
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from models.adjustments import (
    MicroAdjustment, MacroAdjustment, RecoveryProtocol, RecoveryWeek, PlanModification, TerrainExposure
)
from models.feedback import DailyFeedback, RaceFeedback, DNFEvent, LimiterType, DNFCause


RECOVERY_START_OFFSET_DAYS = 2
RECOVERY_VOLUME_RAMP = (40.0, 60.0)


def generate_micro_adjustment(feedback: DailyFeedback) -> MicroAdjustment:
    """
    Ajustement court terme

    Fatigue > 7: -10 % volume et un jour de repos; fatigue < 3 et ressenti > 8:
    +5 %. Douleur: -15 % d'intensité. Sommeil < 5: -5 % volume (cumulable).
    """
    volume_change = 0.0
    intensity_change = 0.0
    rest_days_added = 0
    reasons = []
    modifications = []
    on = feedback.feedback_date

    fatigue = feedback.fatigue or 0
    if fatigue > 7:
        volume_change = -10.0
        rest_days_added = 1
        reasons.append("High fatigue detected - reducing volume and adding rest day")
        modifications.append(PlanModification(modification_date=on, change="Volume reduced by 10%, extra rest day added"))
    elif fatigue < 3 and (feedback.feel or 0) > 8:
        volume_change = 5.0
        reasons.append("Strong recovery - slightly increasing training load")
        modifications.append(PlanModification(modification_date=on, change="Volume increased by 5%"))

    if feedback.has_pain():
        intensity_change = -15.0
        reasons.append(f"Pain in {feedback.pain_location} - reducing intensity")
        modifications.append(PlanModification(
            modification_date=on, change=f"Intensity reduced by 15% due to pain in {feedback.pain_location}"
        ))

    if feedback.sleep_quality is not None and feedback.sleep_quality < 5:
        volume_change -= 5.0
        reasons.append("Poor sleep quality - reducing volume")
        modifications.append(PlanModification(modification_date=on, change="Volume reduced by 5% due to poor sleep"))

    return MicroAdjustment(
        volume_change_percent=volume_change,
        intensity_change_percent=intensity_change,
        rest_days_added=rest_days_added,
        reason="\n".join(reasons) or "Minor adjustments based on feedback",
        modifications=modifications
    )


def generate_macro_adjustment(feedback: RaceFeedback) -> MacroAdjustment:
    """Réorientation des 8 prochaines semaines selon le bilan de course"""
    emphasis = []
    nutrition = []
    terrain: Optional[TerrainExposure] = None
    reasons = []

    if feedback.biggest_limiter == LimiterType.HEAT:
        emphasis += ['heat_adaptation', 'hydration_protocols']
        reasons.append("Heat was primary limiter - increasing heat adaptation training")

    if feedback.biggest_limiter == LimiterType.STOMACH:
        nutrition += [
            "Test fueling strategy in all long runs",
            "Increase gut training sessions",
            "Review fuel types and timing",
        ]
        reasons.append("GI issues detected - comprehensive nutrition protocol update")

    if (feedback.climbing_difficulty or 0) >= 4:
        terrain = TerrainExposure(vertical_gain_increase_percent=20, technical_terrain_sessions=2)
        emphasis.append('vertical_gain')
        reasons.append("Challenging climbs - increasing vertical training")

    if (feedback.downhill_difficulty or 0) >= 4:
        emphasis += ['downhill_durability', 'eccentric_strength']
        reasons.append("Difficult downhills - adding eccentric strength work")

    if feedback.biggest_limiter == LimiterType.PACING:
        emphasis += ['pacing_practice', 'race_simulations']
        reasons.append("Pacing errors - more controlled pace training needed")

    return MacroAdjustment(
        training_emphasis=emphasis,
        terrain_exposure=terrain,
        nutrition_protocol=nutrition,
        reason="\n".join(reasons) or "Macro adjustments based on race performance"
    )


# Consignes propres à la cause: (intensité S1, focus S1, intensité S2, protocole de fond)
CAUSE_GUIDANCE = {
    DNFCause.INJURY: (
        ["Rest or cross-training only if pain-free"],
        ["Physical therapy if needed"],
        ["Return to running only if pain-free"],
        ["Comprehensive injury assessment", "Strengthen identified weak areas", "Review training load progression"],
    ),
    DNFCause.HEAT: (
        ["Avoid heat exposure"],
        ["Rehydration protocol"],
        ["Short heat adaptation sessions"],
        ["Systematic heat adaptation protocol", "Improved hydration strategy", "Pre-cooling techniques for hot races"],
    ),
    DNFCause.STOMACH: (
        ["Gentle exercise only"],
        ["GI system rest"],
        ["Test simple nutrition in short runs"],
        ["Complete nutrition strategy review", "Identify problematic fuel sources", "Progressive gut training protocol"],
    ),
    DNFCause.PACING: (
        ["Easy runs with strict HR limits"],
        [],
        ["Controlled tempo runs with pacing focus"],
        ["Implement race pacing calculator", "More conservative race strategy", "Practice pacing in all key workouts"],
    ),
    DNFCause.MENTAL: (
        [],
        ["Mental recovery", "Low-pressure training"],
        [],
        ["Reassess race goals and expectations", "Mental skills training",
         "Consider shorter races to rebuild confidence"],
    ),
}


def generate_recovery_protocol(event: DNFEvent) -> RecoveryProtocol:
    """
    Protocole de reprise après abandon

    Démarre 2 jours après la course; semaine 1 à 40 % du volume,
    semaine 2 à 60 %, consignes adaptées à la cause.

    Args:
        event: Abandon déclaré

    Returns:
        RecoveryProtocol (completed=False)
    """
    week1_intensity, week1_focus, week2_intensity, root_cause = CAUSE_GUIDANCE.get(event.dnf_cause, ([], [], [], []))

    week1 = RecoveryWeek(
        week_number=1,
        volume_percentage=RECOVERY_VOLUME_RAMP[0],
        intensity_guidelines=list(week1_intensity),
        focus_areas=["Active recovery", "Easy aerobic base"] + list(week1_focus)
    )
    week2 = RecoveryWeek(
        week_number=2,
        volume_percentage=RECOVERY_VOLUME_RAMP[1],
        intensity_guidelines=["Easy runs only", "No high-intensity work",
                              "Optional short tempo if feeling strong"] + list(week2_intensity),
        focus_areas=["Gradual volume return", "Monitor for warning signs"]
    )

    return RecoveryProtocol(
        start_date=event.event_date + timedelta(days=RECOVERY_START_OFFSET_DAYS),
        weeks=[week1, week2],
        root_cause_protocol=list(root_cause),
        reason=f"Recovery protocol for DNF caused by {event.dnf_cause.value} at {event.km_stopped}km"
    )


# Sensibilité des facteurs d'allure par point au-dessus de 3/5
PACE_FACTOR_STEPS = {
    'climbing': ('climbing_difficulty', 0.05),
    'downhill': ('downhill_difficulty', 0.03),
    'heat': ('heat_perception', 0.04),
    'technical': ('technicality', 0.06),
}


def update_pacing_model(feedback: RaceFeedback, pace_factors: dict[str, float]) -> dict[str, float]:
    """Corrige les facteurs d'allure pour chaque difficulté notée au-dessus de 3"""
    updated = dict(pace_factors)
    for factor, (field, step) in PACE_FACTOR_STEPS.items():
        rating = getattr(feedback, field) or 0
        if rating > 3:
            updated[factor] = updated.get(factor, 1.0) + (rating - 3) * step
    return updated


class NutritionModel(BaseModel):
    reliability_score: float
    recommendations: list[str] = Field(default_factory=list)
    successful_strategies: list[str] = Field(default_factory=list)
    problematic_areas: list[str] = Field(default_factory=list)


def update_nutrition_model(race_feedback: Sequence[RaceFeedback], dnf_events: Sequence[DNFEvent]) -> NutritionModel:
    """
    Fiabilité de la stratégie nutritionnelle (0-100, 50 sans donnée)

    Un abandon digestif compte double.
    """
    successes = 0
    failures = 0
    strategies = []
    problems = []

    for race in race_feedback:
        if race.biggest_limiter != LimiterType.STOMACH:
            successes += 1
            if race.fuel_log:
                strategies.append(f"Successful: {race.fuel_log[:100]}")
        else:
            failures += 1
            problems.append(f"GI issues at {race.issues_start_km or 'unknown'}km: {race.limiter_notes or 'No details'}")

    for dnf in dnf_events:
        if dnf.dnf_cause == DNFCause.STOMACH:
            failures += 2
            problems.append(f"DNF at {dnf.km_stopped}km: {dnf.dnf_cause_notes or 'GI distress'}")

    total = successes + failures
    reliability = successes / total * 100 if total else 50.0

    recommendations = []
    if reliability < 50:
        recommendations += [
            "Critical: Comprehensive nutrition strategy overhaul needed",
            "Work with sports nutritionist",
            "Test fueling in all training runs over 90 minutes",
        ]
    elif reliability < 75:
        recommendations += [
            "Review and refine current nutrition approach",
            "Identify specific problematic foods or timing",
            "Increase gut training frequency",
        ]
    if failures > 2:
        recommendations += ["Consider simpler fuel sources", "Practice race-day nutrition in all key workouts"]

    return NutritionModel(
        reliability_score=reliability,
        recommendations=recommendations,
        successful_strategies=strategies[:3],
        problematic_areas=problems[:3]
    )


class InjuryPreventionPlan(BaseModel):
    protocol: list[str]
    exercises: list[str] = Field(default_factory=list)
    training_modifications: list[str] = Field(default_factory=list)


# Mots-clés de localisation -> (exercices, modifications d'entraînement)
INJURY_AREAS = {
    ('knee',): (["Single-leg squats", "Step-ups", "Hip strengthening"],
                ["Reduce downhill running", "Increase cross-training"]),
    ('hamstring',): (["Nordic curls", "Hamstring bridges", "Hip flexor stretches"],
                     ["Shorter stride focus", "Reduce speedwork temporarily"]),
    ('achilles', 'ankle'): (["Calf raises", "Eccentric heel drops", "Ankle mobility"],
                            ["Softer surfaces", "Reduce fast downhills"]),
}


def activate_injury_prevention(pain_locations: Sequence[str]) -> InjuryPreventionPlan:
    """Protocole de prévention selon les zones douloureuses déclarées"""
    lowered = [loc.lower() for loc in pain_locations]
    exercises = []
    modifications = []
    for keywords, (area_exercises, area_modifications) in INJURY_AREAS.items():
        if any(k in loc for loc in lowered for k in keywords):
            exercises += area_exercises
            modifications += area_modifications

    return InjuryPreventionPlan(
        protocol=["Reduce training volume by 15-20%", "Add extra rest day per week", "Monitor pain levels daily"],
        exercises=exercises,
        training_modifications=modifications
    )
