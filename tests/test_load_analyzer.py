"""
Tests de l'analyse de charge: ACWR, recommandations et charge événementielle
"""
from datetime import timedelta

import pytest

from core.acwr_zones import get_zone, get_trend, is_sustainable_pattern
from core.load_analyzer import (
    LoadAnalyzer, compute_training_load, get_adaptation_scale, get_load_trend, recommendation_for_ratio
)
from models.context import AcwrZone
from models.metrics import LoadRecommendation, TrendDirection
from models.race import Race, RacePriority

from conftest import InMemoryActivityStore, InMemoryCalendarStore


def _spike_week(make_activity, acute_minutes=100.0, earlier_minutes=100.0):
    """acute_minutes dans les 7 derniers jours, earlier_minutes entre J-8 et J-27"""
    return [
        make_activity(days_ago=1, minutes=acute_minutes / 2),
        make_activity(days_ago=3, minutes=acute_minutes / 2),
        make_activity(days_ago=10, minutes=earlier_minutes / 2),
        make_activity(days_ago=20, minutes=earlier_minutes / 2),
    ]


def test_acute_spike_recommends_reduce(make_activity, reference_date):
    """100 min aiguës pour 200 min sur 28 jours: chronique 50, ratio 2.0"""
    load = compute_training_load(_spike_week(make_activity), reference_date)

    assert load.acute_load == pytest.approx(100)
    assert load.chronic_load == pytest.approx(50)
    assert load.ratio == pytest.approx(2.0)
    assert load.recommendation == LoadRecommendation.REDUCE


def test_ratio_is_scale_invariant(make_activity, reference_date):
    base = compute_training_load(_spike_week(make_activity, 70, 330), reference_date)
    tripled = compute_training_load(_spike_week(make_activity, 210, 990), reference_date)

    assert base.ratio == pytest.approx(0.7)
    assert tripled.ratio == pytest.approx(base.ratio)
    assert tripled.recommendation == base.recommendation == LoadRecommendation.INCREASE


def test_no_history_gives_neutral_ratio(reference_date):
    load = compute_training_load([], reference_date)
    assert load.chronic_load == 0
    assert load.ratio == 1.0
    assert load.recommendation == LoadRecommendation.MAINTAIN


def test_no_recent_activity_recommends_taper(make_activity, reference_date):
    activities = [make_activity(days_ago=d, minutes=60) for d in (12, 15, 18, 22)]
    load = compute_training_load(activities, reference_date)

    assert load.acute_load == 0
    assert load.ratio < 0.6
    assert load.recommendation == LoadRecommendation.TAPER


def test_window_boundaries_are_inclusive(make_activity, reference_date):
    activities = [
        make_activity(days_ago=6, minutes=30),   # premier jour de la fenêtre aiguë
        make_activity(days_ago=7, minutes=40),   # hors aiguë, dans la chronique
        make_activity(days_ago=27, minutes=50),  # premier jour de la fenêtre chronique
        make_activity(days_ago=28, minutes=500),  # hors fenêtre
        make_activity(days_ago=-1, minutes=500),  # futur
    ]
    load = compute_training_load(activities, reference_date)

    assert load.acute_load == 30
    assert load.chronic_load == pytest.approx(120 / 4)
    assert load.included_count == 3


def test_strength_sessions_do_not_move_the_ratio(make_activity, reference_date):
    activities = _spike_week(make_activity)
    with_strength = activities + [make_activity(days_ago=d, type="WeightTraining", minutes=90) for d in (0, 2, 4)]

    assert compute_training_load(with_strength, reference_date).ratio == \
        compute_training_load(activities, reference_date).ratio
    assert compute_training_load(with_strength, reference_date).breakdown.strength == 270


def test_calendar_events_stay_out_of_the_ratio(make_activity, reference_date):
    activities = _spike_week(make_activity)
    race = Race(name="Semi de Paris", event_date=reference_date - timedelta(days=2), distance_km=21.1,
                elevation_gain_m=100, priority=RacePriority.A)

    load = compute_training_load(activities, reference_date, events=[race])

    assert load.ratio == pytest.approx(2.0)
    assert load.event_load.event_count == 1
    # (21.1 + 100/100) x 1.5
    assert load.event_load.acute_km == pytest.approx(33.15)
    assert load.event_load.chronic_km == pytest.approx(round(33.15 / 4, 2))


@pytest.mark.parametrize("ratio,expected", [
    (1.51, LoadRecommendation.REDUCE),
    (1.5, LoadRecommendation.MAINTAIN),
    (1.31, LoadRecommendation.MAINTAIN),
    (1.0, LoadRecommendation.MAINTAIN),
    (0.8, LoadRecommendation.MAINTAIN),
    (0.79, LoadRecommendation.INCREASE),
    (0.6, LoadRecommendation.INCREASE),
    (0.59, LoadRecommendation.TAPER),
])
def test_recommendation_thresholds(ratio, expected):
    assert recommendation_for_ratio(ratio) == expected


def test_adaptation_scale_by_zone():
    assert get_adaptation_scale(1.8).scale == 0.8
    assert get_adaptation_scale(1.4).scale == 0.9
    assert get_adaptation_scale(1.0).scale == 1.0
    assert get_adaptation_scale(0.5).scale == 1.1


def test_zones_and_sustainability():
    assert get_zone(0.7) == AcwrZone.UNDERLOAD
    assert get_zone(1.2) == AcwrZone.OPTIMAL
    assert get_zone(1.45) == AcwrZone.CAUTION
    assert get_zone(1.7) == AcwrZone.HIGH_RISK
    assert get_zone(2.1) == AcwrZone.EXTREME_RISK
    assert get_zone(0.85, personalized_lower=0.9) == AcwrZone.UNDERLOAD

    assert get_trend([0.9, 1.0, 1.3, 1.4]) == TrendDirection.INCREASING
    assert get_trend([1.0, 1.1]) == TrendDirection.STABLE

    sustainable, _ = is_sustainable_pattern([1.6, 1.7, 1.2])
    assert not sustainable
    sustainable, _ = is_sustainable_pattern([1.0, 1.05, 1.1])
    assert sustainable


def test_weekly_trend_detects_increase(make_activity, reference_date):
    # Semaines précédentes: 60 min; semaine courante: 180 min
    monday = reference_date - timedelta(days=reference_date.weekday())
    activities = [
        make_activity(reference=monday - timedelta(days=7 * w), days_ago=0, minutes=60) for w in (1, 2, 3)
    ] + [make_activity(reference=monday, days_ago=0, minutes=180)]

    trend = get_load_trend(activities, reference_date)

    assert trend.weekly_minutes == [60, 60, 60, 180]
    assert trend.direction == TrendDirection.INCREASING


def test_load_analyzer_fetches_window_and_events(make_activity, reference_date):
    store = InMemoryActivityStore(_spike_week(make_activity) + [make_activity(days_ago=40, minutes=999)])
    calendar = InMemoryCalendarStore(races=[
        Race(name="10 km", event_date=reference_date - timedelta(days=1), distance_km=10.0)
    ])

    load = LoadAnalyzer(store, calendar).compute_load(reference_date)

    assert load.ratio == pytest.approx(2.0)
    assert load.event_load.event_count == 1
