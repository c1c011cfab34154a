"""
Traitement pondéré des retours athlète

Chaque retour est classé (séance normale, séance clé, simulation, course,
abandon), reçoit un poids, puis est transformé en enseignements
(FeedbackInsight) qui nomment les modèles impactés.
"""
import math
from collections import Counter
from datetime import date
from typing import Literal, Optional, Sequence

from pydantic import BaseModel, Field
from loguru import logger

from config.settings import FEEDBACK_WEIGHTS, FEEDBACK_RECENCY_DAYS
from models.feedback import (
    DailyFeedback, RaceFeedback, DNFEvent, FeedbackEvent, FeedbackInsight, FeedbackType,
    SessionImportance, LimiterType, DNFCause
)


KEY_IMPORTANCES = {SessionImportance.KEY_WORKOUT, SessionImportance.LONG_RUN}
DEFAULT_OVERALL_SCORE = 50.0
MAX_MODEL_CONFIDENCE = 10.0


class PainPattern(BaseModel):
    """Occurrences d'une douleur à l'entraînement et en course"""
    training_occurrences: int = 0
    race_occurrences: int = 0
    severity: Literal['low', 'medium', 'high'] = 'low'


class DNFPatternReport(BaseModel):
    distribution: dict[DNFCause, int]
    total_dnfs: int
    most_common_cause: Optional[DNFCause] = None
    preventive_recommendations: list[str] = Field(default_factory=list)


def feedback_weight(feedback_type: FeedbackType) -> float:
    return FEEDBACK_WEIGHTS[feedback_type.value]


def classify_feedback(event: FeedbackEvent) -> tuple[FeedbackType, float]:
    """
    Type et poids d'un retour

    Args:
        event: DailyFeedback, RaceFeedback ou DNFEvent

    Returns:
        (FeedbackType, poids)
    """
    if isinstance(event, DNFEvent):
        feedback_type = FeedbackType.DNF
    elif isinstance(event, RaceFeedback):
        feedback_type = FeedbackType.RACE_SIMULATION if event.is_simulation() else FeedbackType.RACE
    elif event.session_importance in KEY_IMPORTANCES:
        feedback_type = FeedbackType.TRAINING_KEY_WORKOUT
    else:
        feedback_type = FeedbackType.TRAINING_NORMAL
    return feedback_type, feedback_weight(feedback_type)


def _insight(feedback_type: FeedbackType, factor: float, text: str, on: date, models: list[str]) -> FeedbackInsight:
    weight = feedback_weight(feedback_type)
    return FeedbackInsight(
        source_type=feedback_type,
        confidence=round(factor * weight, 4),
        weight=weight,
        insight=text,
        insight_date=on,
        affected_models=models
    )


def process_daily_feedback(feedback: DailyFeedback, feedback_type: Optional[FeedbackType] = None) -> list[FeedbackInsight]:
    """
    Enseignements d'un retour quotidien

    Fatigue > 7, sommeil < 5, douleur déclarée, effort/ressenti > 1.5.
    """
    if feedback_type is None:
        feedback_type, _ = classify_feedback(feedback)
    on = feedback.feedback_date
    label = feedback_type.value.replace('_', ' ', 1)
    insights = []

    if feedback.fatigue and feedback.fatigue > 7:
        insights.append(_insight(
            feedback_type, 0.7, f"High fatigue reported ({feedback.fatigue}/10) during {label}", on,
            ['recovery', 'readiness', 'volume_adjustment']
        ))
    if feedback.sleep_quality and feedback.sleep_quality < 5:
        insights.append(_insight(
            feedback_type, 0.6, f"Poor sleep quality ({feedback.sleep_quality}/10) affecting recovery", on,
            ['recovery', 'readiness']
        ))
    if feedback.has_pain():
        insights.append(_insight(
            feedback_type, 0.9, f"Pain reported in {feedback.pain_location}", on,
            ['injury_risk', 'recovery', 'volume_adjustment']
        ))
    if feedback.effort and feedback.feel and feedback.effort / feedback.feel > 1.5:
        insights.append(_insight(
            feedback_type, 0.75, "Effort higher than feel - possible overtraining or inadequate recovery", on,
            ['recovery', 'readiness', 'training_stress']
        ))
    return insights


def process_race_feedback(feedback: RaceFeedback) -> list[FeedbackInsight]:
    """Enseignements d'une course ou simulation (facteur limitant, difficultés)"""
    feedback_type, _ = classify_feedback(feedback)
    on = feedback.event_date
    limiter = feedback.biggest_limiter
    insights = []

    if limiter == LimiterType.HEAT and (feedback.heat_perception or 0) >= 4:
        insights.append(_insight(
            feedback_type, 0.9, "Heat was a major limiter - heat adaptation training needed", on,
            ['heat_adaptation', 'pacing', 'training_emphasis']
        ))
    if limiter == LimiterType.LEGS and (feedback.downhill_difficulty or 0) >= 4:
        insights.append(_insight(
            feedback_type, 0.85, "Leg fatigue on technical downhills - eccentric strength training recommended", on,
            ['downhill_durability', 'strength_training', 'training_emphasis']
        ))
    if limiter == LimiterType.STOMACH:
        insights.append(_insight(
            feedback_type, 0.95, "GI issues limited performance - nutrition strategy needs adjustment", on,
            ['nutrition_reliability', 'fueling_protocol', 'race_readiness']
        ))
    if limiter == LimiterType.PACING and feedback.issues_start_km:
        insights.append(_insight(
            feedback_type, 0.9,
            f"Pacing error led to issues at {feedback.issues_start_km}km - adjust race strategy", on,
            ['pacing_accuracy', 'race_strategy', 'terrain_confidence']
        ))
    if (feedback.climbing_difficulty or 0) >= 4:
        insights.append(_insight(
            feedback_type, 0.8, "Challenging climbs - increase vertical gain in training", on,
            ['terrain_confidence', 'climbing_strength', 'training_emphasis']
        ))
    return insights


# Enseignement spécifique par cause d'abandon: (facteur de confiance, texte, modèles)
DNF_CAUSE_INSIGHTS = {
    DNFCause.INJURY: (1.0, "Injury-related DNF - 14-day recovery protocol with reduced volume",
                      ['injury_risk', 'recovery', 'volume_adjustment', 'training_plan']),
    DNFCause.HEAT: (0.95, "Heat exhaustion DNF - prioritize heat adaptation and hydration protocols",
                    ['heat_adaptation', 'hydration_strategy', 'training_conditions']),
    DNFCause.STOMACH: (0.95, "GI distress DNF - comprehensive nutrition strategy review required",
                       ['nutrition_reliability', 'fueling_protocol', 'gut_training']),
    DNFCause.PACING: (0.9, "Pacing error DNF - conservative race strategy and better pacing tools needed",
                      ['pacing_accuracy', 'race_strategy', 'effort_management']),
}


def process_dnf_feedback(event: DNFEvent) -> list[FeedbackInsight]:
    """Enseignements d'un abandon (toujours au poids maximal)"""
    on = event.event_date
    insights = [_insight(
        FeedbackType.DNF, 1.0,
        f"DNF due to {event.dnf_cause.value} at {event.km_stopped}km - recovery protocol activated", on,
        ['recovery', 'readiness', 'training_stress', 'injury_risk']
    )]

    specific = DNF_CAUSE_INSIGHTS.get(event.dnf_cause)
    if specific:
        factor, text, affected = specific
        insights.append(_insight(FeedbackType.DNF, factor, text, on, list(affected)))

    if event.had_warning_signs:
        insights.append(_insight(
            FeedbackType.DNF, 0.85, "Warning signs present before DNF - improve pre-race readiness assessment", on,
            ['readiness', 'risk_assessment', 'pre_race_protocol']
        ))
    return insights


def process_feedback(event: FeedbackEvent) -> list[FeedbackInsight]:
    """Aiguille un retour vers le traitement adapté"""
    if isinstance(event, DNFEvent):
        return process_dnf_feedback(event)
    if isinstance(event, RaceFeedback):
        return process_race_feedback(event)
    return process_daily_feedback(event)


def calculate_overall_score(insights: Sequence[FeedbackInsight], today: Optional[date] = None) -> float:
    """
    Score global pondéré par le type et la récence (exp(-jours/30))

    Returns:
        Score 0-100 (50 sans retour)
    """
    if not insights:
        return DEFAULT_OVERALL_SCORE
    today = today or date.today()

    weighted_total = 0.0
    total_weight = 0.0
    for item in insights:
        days_ago = max((today - item.insight_date).days, 0)
        factor = item.weight * math.exp(-days_ago / FEEDBACK_RECENCY_DAYS)
        weighted_total += item.confidence * 100 * factor
        total_weight += factor

    return weighted_total / total_weight if total_weight > 0 else DEFAULT_OVERALL_SCORE


def analyze_race_limiters(race_feedback: Sequence[RaceFeedback]) -> dict[LimiterType, int]:
    """Distribution des facteurs limitants déclarés"""
    distribution = {limiter: 0 for limiter in LimiterType}
    for race in race_feedback:
        if race.biggest_limiter:
            distribution[race.biggest_limiter] += 1
    return distribution


RACE_LEGS_KEY = 'race_legs'


def analyze_pain_patterns(
    daily_feedback: Sequence[DailyFeedback],
    race_feedback: Sequence[RaceFeedback]
) -> dict[str, PainPattern]:
    """
    Regroupe les douleurs déclarées par localisation

    Les douleurs d'entraînement sont comptées par localisation (sévérité
    faible). Un limiteur 'jambes' commenté en course est regroupé sous
    'race_legs' avec une sévérité haute.

    Args:
        daily_feedback: Retours quotidiens
        race_feedback: Retours de course

    Returns:
        dict localisation -> PainPattern
    """
    patterns: dict[str, PainPattern] = {}
    for feedback in daily_feedback:
        if feedback.has_pain():
            pattern = patterns.setdefault(feedback.pain_location, PainPattern())
            pattern.training_occurrences += 1

    for race in race_feedback:
        if race.biggest_limiter == LimiterType.LEGS and race.limiter_notes:
            pattern = patterns.setdefault(RACE_LEGS_KEY, PainPattern(severity='medium'))
            pattern.race_occurrences += 1
            pattern.severity = 'high'
    return patterns


PREVENTIVE_RECOMMENDATIONS = {
    DNFCause.HEAT: "Increase heat adaptation training sessions",
    DNFCause.STOMACH: "Review and test nutrition strategy systematically",
    DNFCause.PACING: "Implement more conservative pacing strategy with better monitoring",
    DNFCause.INJURY: "Prioritize injury prevention and strength training",
}


def analyze_dnf_patterns(dnf_events: Sequence[DNFEvent]) -> DNFPatternReport:
    """
    Causes d'abandon récurrentes et recommandations préventives

    Une recommandation est émise pour toute cause observée plus d'une fois.
    """
    counts = Counter(e.dnf_cause for e in dnf_events)
    distribution = {cause: counts.get(cause, 0) for cause in DNFCause}
    most_common = counts.most_common(1)[0][0] if counts else None

    recommendations = [
        text for cause, text in PREVENTIVE_RECOMMENDATIONS.items() if distribution[cause] > 1
    ]
    if recommendations:
        logger.info(f"{len(dnf_events)} abandon(s) analysé(s), cause dominante: {most_common.value}")

    return DNFPatternReport(
        distribution=distribution,
        total_dnfs=len(dnf_events),
        most_common_cause=most_common,
        preventive_recommendations=recommendations
    )


def update_model_confidence(feedback_type: FeedbackType, feedback_quality: float) -> float:
    """
    Confiance apportée à un modèle par un retour

    qualité x poids, majorée de 20 % (abandon) ou 10 % (course), plafonnée à 10.
    """
    base = feedback_quality * feedback_weight(feedback_type)
    if feedback_type == FeedbackType.DNF:
        return min(base * 1.2, MAX_MODEL_CONFIDENCE)
    if feedback_type == FeedbackType.RACE:
        return min(base * 1.1, MAX_MODEL_CONFIDENCE)
    return base
