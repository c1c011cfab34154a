"""
Analyse de charge: charge aiguë/chronique, ACWR et recommandation
"""
from datetime import date, timedelta
from typing import Iterable, Optional, Union

from loguru import logger

from config.settings import (
    ACWR_OPTIMAL_MIN, ACWR_OPTIMAL_MAX, ACWR_CAUTION_MAX, ACWR_TAPER_BELOW,
    ACWR_ACUTE_DAYS, ACWR_CHRONIC_DAYS
)
from core.activity_classifier import ActivityClassifier
from models.activity import Activity
from models.metrics import (
    TrainingLoad, LoadRecommendation, AdaptationScale, LoadTrend, TrendDirection
)
from models.race import Race, CalendarEvent
from services.collaborators import ActivityStore, CalendarStore
from utils.activity_load import EventLoadConverter, KmEquivalentConverter, calculate_event_load


def recommendation_for_ratio(ratio: float) -> LoadRecommendation:
    """
    Recommandation de stress selon l'ACWR

    > 1.5 reduce, > 1.3 maintain, < 0.6 taper, < 0.8 increase, sinon maintain
    """
    if ratio > ACWR_CAUTION_MAX:
        return LoadRecommendation.REDUCE
    if ratio > ACWR_OPTIMAL_MAX:
        return LoadRecommendation.MAINTAIN
    if ratio < ACWR_TAPER_BELOW:
        return LoadRecommendation.TAPER
    if ratio < ACWR_OPTIMAL_MIN:
        return LoadRecommendation.INCREASE
    return LoadRecommendation.MAINTAIN


def compute_ratio(acute: float, chronic: float) -> float:
    """Ratio aigu/chronique (chronique nulle => 1.0)"""
    if chronic == 0:
        return 1.0
    return acute / chronic


def get_adaptation_scale(ratio: float) -> AdaptationScale:
    """Facteur de volume à appliquer à la semaine suivante"""
    if ratio > ACWR_CAUTION_MAX:
        return AdaptationScale(
            scale=0.8,
            reason="High training load detected - reducing volume by 20% for recovery"
        )
    if ratio > ACWR_OPTIMAL_MAX:
        return AdaptationScale(
            scale=0.9,
            reason="Elevated training load - reducing volume by 10% for adaptation"
        )
    if ratio < ACWR_OPTIMAL_MIN:
        return AdaptationScale(
            scale=1.1,
            reason="Low training load - increasing volume by 10% for progression"
        )
    return AdaptationScale(scale=1.0, reason="Training load is balanced - maintaining current volume")


def _activity_day(activity: Activity) -> date:
    return activity.timestamp.date()


def compute_training_load(
    activities: Iterable[Activity],
    reference_date: date,
    events: Iterable[Union[Race, CalendarEvent]] = (),
    classifier: Optional[ActivityClassifier] = None,
    converter: Optional[EventLoadConverter] = None
) -> TrainingLoad:
    """
    Calcule la charge d'entraînement à une date de référence

    Fonction pure de la fenêtre d'activités:
    - aiguë = minutes éligibles sur [ref-6, ref]
    - chronique = minutes éligibles sur [ref-27, ref] / 4

    Args:
        activities: Activités (filtrées sur la fenêtre de 28 jours)
        reference_date: Dernier jour inclus
        events: Courses/événements (charge auxiliaire, hors ratio)
        classifier: Classifieur (défaut: règles standard)
        converter: Conversion km-équivalent des événements

    Returns:
        TrainingLoad
    """
    classifier = classifier or ActivityClassifier()
    acute_start = reference_date - timedelta(days=ACWR_ACUTE_DAYS - 1)
    chronic_start = reference_date - timedelta(days=ACWR_CHRONIC_DAYS - 1)

    window = [a for a in activities if chronic_start <= _activity_day(a) <= reference_date]
    acute_window = [a for a in window if _activity_day(a) >= acute_start]

    chronic_aggregate = classifier.aggregate_load(window)
    acute_aggregate = classifier.aggregate_load(acute_window)

    acute = acute_aggregate.total_eligible_minutes
    chronic = chronic_aggregate.total_eligible_minutes / (ACWR_CHRONIC_DAYS / ACWR_ACUTE_DAYS)
    ratio = compute_ratio(acute, chronic)

    event_load = calculate_event_load(
        events, reference_date, converter or KmEquivalentConverter(),
        ACWR_ACUTE_DAYS, ACWR_CHRONIC_DAYS
    )

    return TrainingLoad(
        reference_date=reference_date,
        acute_load=acute,
        chronic_load=chronic,
        ratio=ratio,
        breakdown=chronic_aggregate.breakdown,
        recommendation=recommendation_for_ratio(ratio),
        event_load=event_load,
        included_count=chronic_aggregate.included_count,
        excluded_count=chronic_aggregate.excluded_count
    )


def get_load_trend(
    activities: Iterable[Activity],
    reference_date: date,
    weeks: int = 4,
    classifier: Optional[ActivityClassifier] = None
) -> LoadTrend:
    """
    Minutes éligibles par semaine (lundi-dimanche) sur les dernières semaines

    La direction compare la dernière semaine à la moyenne des précédentes
    (écart de plus de 10 %).
    """
    classifier = classifier or ActivityClassifier()
    activities = list(activities)
    current_monday = reference_date - timedelta(days=reference_date.weekday())

    weekly = []
    for i in range(weeks - 1, -1, -1):
        start = current_monday - timedelta(days=7 * i)
        end = start + timedelta(days=6)
        week_activities = [a for a in activities if start <= _activity_day(a) <= end]
        weekly.append(classifier.aggregate_load(week_activities).total_eligible_minutes)

    if len(weekly) < 2:
        return LoadTrend(weekly_minutes=weekly)

    previous = weekly[:-1]
    baseline = sum(previous) / len(previous)
    if baseline == 0:
        direction = TrendDirection.INCREASING if weekly[-1] > 0 else TrendDirection.STABLE
        return LoadTrend(weekly_minutes=weekly, direction=direction)

    change = (weekly[-1] - baseline) / baseline
    if change > 0.10:
        direction = TrendDirection.INCREASING
    elif change < -0.10:
        direction = TrendDirection.DECREASING
    else:
        direction = TrendDirection.STABLE
    return LoadTrend(weekly_minutes=weekly, direction=direction, change_percent=round(change * 100, 1))


class LoadAnalyzer:
    """Analyse de charge branchée sur les collaborateurs de stockage"""

    def __init__(
        self,
        activity_store: ActivityStore,
        calendar_store: Optional[CalendarStore] = None,
        classifier: Optional[ActivityClassifier] = None,
        converter: Optional[EventLoadConverter] = None
    ):
        self.activity_store = activity_store
        self.calendar_store = calendar_store
        self.classifier = classifier or ActivityClassifier()
        self.converter = converter or KmEquivalentConverter()

    def fetch_window(self, reference_date: date) -> list[Activity]:
        """Activités des 28 jours se terminant à reference_date"""
        start = reference_date - timedelta(days=ACWR_CHRONIC_DAYS - 1)
        return list(self.activity_store.get_activities(start, reference_date))

    def fetch_events(self) -> list[Union[Race, CalendarEvent]]:
        if self.calendar_store is None:
            return []
        races = list(self.calendar_store.get_races())
        events = list(self.calendar_store.get_events())
        return races + events

    def compute_load(self, reference_date: date) -> TrainingLoad:
        """Charge à la date de référence (sans effet de bord)"""
        activities = self.fetch_window(reference_date)
        warnings = self.classifier.validate_classification(activities)
        load = compute_training_load(
            activities, reference_date, self.fetch_events(), self.classifier, self.converter
        )
        logger.debug(
            f"Charge au {reference_date}: aiguë={load.acute_load:.0f} min, "
            f"chronique={load.chronic_load:.0f} min, ratio={load.ratio:.2f} "
            f"({load.recommendation.value}, {len(warnings)} avertissement(s))"
        )
        return load
