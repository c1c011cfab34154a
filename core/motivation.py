"""
Détection de l'archétype de motivation

Deux sources indépendantes: les réponses d'onboarding (mots-clés, type
d'objectif) et le comportement d'entraînement récent. Les scores sont
combinés, normalisés, puis l'archétype dominant est retenu.
"""
from datetime import date, timedelta
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from config.settings import MOTIVATION_SOURCE_WEIGHTS, MOTIVATION_HISTORY_WEEKS
from models.activity import Activity
from models.context import Archetype, MotivationProfile, Provenance


P, A, M, H, T, C = (
    Archetype.PERFORMER, Archetype.ADVENTURER, Archetype.MINDFUL,
    Archetype.HEALTH, Archetype.TRANSFORMER, Archetype.CONNECTOR,
)

KEYWORD_WEIGHTS = {
    'fast': {P: 0.4, T: 0.2},
    'goal': {P: 0.4, T: 0.2},
    'race': {P: 0.4, T: 0.2},
    'pr': {P: 0.4, T: 0.2},
    'compete': {P: 0.4, T: 0.1},
    'nature': {A: 0.5, M: 0.1},
    'trail': {A: 0.5, M: 0.1},
    'explore': {A: 0.5, M: 0.1},
    'mountain': {A: 0.5},
    'adventure': {A: 0.5},
    'balance': {M: 0.5, H: 0.2},
    'peace': {M: 0.5, H: 0.2},
    'calm': {M: 0.5, H: 0.2},
    'stress': {M: 0.5, H: 0.1},
    'meditation': {M: 0.5},
    'healthy': {H: 0.5, M: 0.2},
    'energy': {H: 0.5, M: 0.2},
    'routine': {H: 0.5, M: 0.2},
    'wellness': {H: 0.5, M: 0.2},
    'fitness': {H: 0.5, M: 0.1},
    'change': {T: 0.5, P: 0.2},
    'stronger': {T: 0.5, P: 0.2},
    'rebuild': {T: 0.5},
    'transform': {T: 0.5, P: 0.1},
    'growth': {T: 0.5, P: 0.1, M: 0.1},
    'together': {C: 0.5, T: 0.1},
    'team': {C: 0.5},
    'share': {C: 0.5},
    'community': {C: 0.5},
    'friends': {C: 0.5},
}

GOAL_TYPE_WEIGHTS = {
    '5k': {P: 0.3, H: 0.2},
    '10k': {P: 0.3, H: 0.1},
    'marathon': {P: 0.4, T: 0.2},
    'ultra': {A: 0.5, P: 0.2},
    'trail': {A: 0.5},
}

FALLBACK_SCORES = {P: 0.16, A: 0.16, M: 0.17, H: 0.17, T: 0.17, C: 0.17}

TRAIL_ACTIVITY_TYPES = {'TrailRun', 'Hike', 'Mountaineering'}


class OnboardingResponses(BaseModel):
    """Réponses au questionnaire d'accueil"""
    primary_motivation: Optional[str] = None
    goal_type: Optional[str] = None
    why_running: Optional[str] = None
    ideal_run: Optional[str] = None
    keep_going_factor: Optional[str] = None
    selected_words: list[str] = Field(default_factory=list)
    free_text: Optional[str] = None

    def all_text(self) -> str:
        parts = [
            self.primary_motivation, self.why_running, self.ideal_run,
            self.keep_going_factor, self.free_text, *self.selected_words,
        ]
        return ' '.join(p for p in parts if p).lower()


class TrainingBehavior(BaseModel):
    """Signaux comportementaux calculés sur les dernières semaines"""
    total_sessions: int = 0
    avg_session_km: float = 0.0
    longest_run_km: float = 0.0
    rest_days_per_week: float = 7.0
    sessions_per_week: float = 0.0
    trail_share: float = 0.0
    elevation_total_m: float = 0.0
    consistency: float = 0.0
    hard_share: Optional[float] = None
    easy_share: Optional[float] = None


def _empty_scores() -> dict[Archetype, float]:
    return {archetype: 0.0 for archetype in Archetype}


def score_onboarding(responses: OnboardingResponses) -> dict[Archetype, float]:
    """Scores issus des mots-clés et du type d'objectif"""
    scores = _empty_scores()
    text = responses.all_text()
    for keyword, weights in KEYWORD_WEIGHTS.items():
        if keyword in text:
            for archetype, weight in weights.items():
                scores[archetype] += weight

    if responses.goal_type:
        for archetype, weight in GOAL_TYPE_WEIGHTS.get(responses.goal_type.lower(), {}).items():
            scores[archetype] += weight
    return scores


def extract_training_behavior(
    activities: Iterable[Activity],
    reference_date: date,
    weeks: int = MOTIVATION_HISTORY_WEEKS
) -> Optional[TrainingBehavior]:
    """
    Résume le comportement d'entraînement des dernières semaines

    Returns:
        TrainingBehavior, ou None si aucune activité sur la période
    """
    start = reference_date - timedelta(days=weeks * 7 - 1)
    window = [a for a in activities if start <= a.timestamp.date() <= reference_date]
    if not window:
        return None

    distances = [a.distance_km or 0 for a in window]
    total_km = sum(distances)
    active_days = {a.timestamp.date() for a in window}

    weekly_counts = [0] * weeks
    for activity in window:
        index = (reference_date - activity.timestamp.date()).days // 7
        weekly_counts[index] += 1
    avg_per_week = len(window) / weeks
    mean_deviation = sum(abs(c - avg_per_week) for c in weekly_counts) / weeks
    consistency = max(0.0, 1 - mean_deviation / avg_per_week)

    trail_km = sum(a.distance_km or 0 for a in window if a.type in TRAIL_ACTIVITY_TYPES)

    hard_share = None
    easy_share = None
    zoned = [a.time_in_zones for a in window if a.time_in_zones and len(a.time_in_zones) == 5]
    zone_total = sum(sum(z) for z in zoned)
    if zone_total > 0:
        hard_share = sum(z[3] + z[4] for z in zoned) / zone_total
        easy_share = sum(z[0] + z[1] for z in zoned) / zone_total

    return TrainingBehavior(
        total_sessions=len(window),
        avg_session_km=total_km / len(window),
        longest_run_km=max(distances),
        rest_days_per_week=(weeks * 7 - len(active_days)) / weeks,
        sessions_per_week=avg_per_week,
        trail_share=trail_km / total_km if total_km else 0.0,
        elevation_total_m=sum(a.elevation_gain_m or 0 for a in window),
        consistency=consistency,
        hard_share=hard_share,
        easy_share=easy_share
    )


def score_training(behavior: TrainingBehavior) -> dict[Archetype, float]:
    """Scores issus du comportement d'entraînement"""
    scores = _empty_scores()

    if behavior.hard_share is not None and behavior.hard_share > 0.25:
        scores[P] += 0.3
    if behavior.easy_share is not None and behavior.easy_share > 0.6:
        scores[M] += 0.3
        scores[H] += 0.2

    if behavior.avg_session_km > 15:
        scores[A] += 0.3
    if behavior.longest_run_km > 25:
        scores[A] += 0.4
    if behavior.trail_share > 0.5:
        scores[A] += 0.4
    if behavior.elevation_total_m > 5000:
        scores[A] += 0.3

    if behavior.rest_days_per_week >= 4:
        scores[M] += 0.3
        scores[H] += 0.3

    if behavior.consistency > 0.8:
        scores[H] += 0.3
        scores[P] += 0.2

    if behavior.sessions_per_week >= 5:
        scores[P] += 0.3
    elif 2 <= behavior.sessions_per_week <= 3:
        scores[H] += 0.2

    return scores


def fallback_profile() -> MotivationProfile:
    """Profil quasi uniforme, confiance nulle"""
    return MotivationProfile(
        scores=dict(FALLBACK_SCORES),
        dominant=Archetype.HEALTH,
        confidence=0.0,
        provenance=Provenance.DEFAULT
    )


def combine_scores(
    onboarding: Optional[dict[Archetype, float]],
    training: Optional[dict[Archetype, float]],
    weights: Optional[dict] = None
) -> MotivationProfile:
    """
    Combine les deux sources et calcule dominant + confiance

    Args:
        onboarding: Scores d'onboarding (None = source absente)
        training: Scores d'entraînement (None = source absente)
        weights: Poids des sources (défaut MOTIVATION_SOURCE_WEIGHTS)
    """
    weights = weights or MOTIVATION_SOURCE_WEIGHTS
    combined = _empty_scores()
    for archetype in Archetype:
        combined[archetype] = (
            (onboarding or {}).get(archetype, 0.0) * weights['onboarding']
            + (training or {}).get(archetype, 0.0) * weights['training']
        )

    total = sum(combined.values())
    if total <= 0:
        return fallback_profile()

    normalized = {archetype: score / total for archetype, score in combined.items()}
    ranked = sorted(Archetype, key=lambda a: normalized[a], reverse=True)
    confidence = min((normalized[ranked[0]] - normalized[ranked[1]]) * 2, 1.0)

    return MotivationProfile(
        scores=normalized,
        dominant=ranked[0],
        confidence=round(confidence, 4)
    )


class MotivationDetector:
    """Détecteur d'archétype à poids configurables"""

    def __init__(self, weights: Optional[dict] = None, history_weeks: int = MOTIVATION_HISTORY_WEEKS):
        self.weights = weights or dict(MOTIVATION_SOURCE_WEIGHTS)
        self.history_weeks = history_weeks

    def detect(
        self,
        activities: Iterable[Activity],
        reference_date: date,
        onboarding: Optional[OnboardingResponses] = None
    ) -> MotivationProfile:
        onboarding_scores = score_onboarding(onboarding) if onboarding else None
        behavior = extract_training_behavior(activities, reference_date, self.history_weeks)
        training_scores = score_training(behavior) if behavior else None

        if onboarding_scores is None and training_scores is None:
            return fallback_profile()
        return combine_scores(onboarding_scores, training_scores, self.weights)
