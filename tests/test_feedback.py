"""
Tests du traitement des retours et des ajustements de plan
"""
from datetime import date, timedelta

import pytest

from core.adaptive_response import (
    activate_injury_prevention, generate_macro_adjustment, generate_micro_adjustment,
    generate_recovery_protocol, update_nutrition_model, update_pacing_model
)
from core.feedback_processor import (
    analyze_dnf_patterns, analyze_pain_patterns, analyze_race_limiters, calculate_overall_score,
    classify_feedback, process_feedback, update_model_confidence
)
from models.feedback import (
    DailyFeedback, DNFCause, DNFEvent, EventType, FeedbackType, LimiterType, RaceFeedback, SessionImportance
)


DAY = date(2025, 3, 12)


def _daily(**kwargs):
    kwargs.setdefault("athlete_id", "athlete-1")
    kwargs.setdefault("feedback_date", DAY)
    return DailyFeedback(**kwargs)


def _race(**kwargs):
    kwargs.setdefault("athlete_id", "athlete-1")
    kwargs.setdefault("event_date", DAY)
    return RaceFeedback(**kwargs)


def _dnf(cause=DNFCause.INJURY, km=62.5, **kwargs):
    return DNFEvent(athlete_id="athlete-1", event_date=DAY, dnf_cause=cause, km_stopped=km, **kwargs)


# ---------------------------------------------------------------------------
# Classification et poids
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("event,expected_type,expected_weight", [
    (_daily(), FeedbackType.TRAINING_NORMAL, 1.0),
    (_daily(session_importance=SessionImportance.KEY_WORKOUT), FeedbackType.TRAINING_KEY_WORKOUT, 1.5),
    (_daily(session_importance=SessionImportance.LONG_RUN), FeedbackType.TRAINING_KEY_WORKOUT, 1.5),
    (_race(event_type=EventType.SIMULATION), FeedbackType.RACE_SIMULATION, 3.0),
    (_race(), FeedbackType.RACE, 5.0),
    (_dnf(), FeedbackType.DNF, 8.0),
])
def test_feedback_weights(event, expected_type, expected_weight):
    assert classify_feedback(event) == (expected_type, expected_weight)


def test_daily_insights_name_affected_models():
    insights = process_feedback(_daily(fatigue=9, sleep_quality=3, pain_location="left knee", effort=9, feel=4))

    assert len(insights) == 4
    assert insights[0].confidence == pytest.approx(0.7)
    assert "left knee" in insights[2].insight
    assert "injury_risk" in insights[2].affected_models
    assert all(i.source_type == FeedbackType.TRAINING_NORMAL for i in insights)


def test_pain_marker_none_is_not_pain():
    assert process_feedback(_daily(pain_location="None", fatigue=5)) == []


def test_key_workout_insights_carry_higher_weight():
    insights = process_feedback(_daily(fatigue=8, session_importance=SessionImportance.KEY_WORKOUT))
    assert insights[0].weight == 1.5
    assert insights[0].confidence == pytest.approx(0.7 * 1.5)


def test_race_insights():
    insights = process_feedback(_race(
        biggest_limiter=LimiterType.PACING, issues_start_km=35.0, climbing_difficulty=5
    ))
    texts = [i.insight for i in insights]

    assert len(insights) == 2
    assert "35.0km" in texts[0]
    assert "vertical" in texts[1]
    assert all(i.weight == 5.0 for i in insights)


def test_dnf_insights_are_weighted_highest():
    insights = process_feedback(_dnf(DNFCause.HEAT, km=48.0, had_warning_signs=True))

    assert len(insights) == 3
    assert all(i.weight == 8.0 for i in insights)
    assert insights[0].confidence == pytest.approx(8.0)
    assert insights[0].affected_models == ['recovery', 'readiness', 'training_stress', 'injury_risk']
    assert "heat_adaptation" in insights[1].affected_models


def test_overall_score_decays_with_age():
    fresh = process_feedback(_daily(fatigue=9))
    assert calculate_overall_score([]) == 50.0
    assert calculate_overall_score(fresh, today=DAY) == pytest.approx(70.0)

    old = process_feedback(_daily(fatigue=9, feedback_date=DAY - timedelta(days=60)))
    recent_pain = process_feedback(_daily(pain_location="hip"))
    mixed = calculate_overall_score(old + recent_pain, today=DAY)
    assert 85.0 < mixed < 90.0


def test_model_confidence_bonus_and_cap():
    assert update_model_confidence(FeedbackType.TRAINING_NORMAL, 0.8) == pytest.approx(0.8)
    assert update_model_confidence(FeedbackType.RACE, 1.0) == pytest.approx(5.5)
    assert update_model_confidence(FeedbackType.DNF, 1.0) == pytest.approx(9.6)
    assert update_model_confidence(FeedbackType.DNF, 2.0) == 10.0


def test_dnf_patterns_recommend_on_repeated_causes():
    report = analyze_dnf_patterns([_dnf(DNFCause.STOMACH), _dnf(DNFCause.STOMACH), _dnf(DNFCause.HEAT)])

    assert report.total_dnfs == 3
    assert report.most_common_cause == DNFCause.STOMACH
    assert report.distribution[DNFCause.STOMACH] == 2
    assert report.preventive_recommendations == ["Review and test nutrition strategy systematically"]

    empty = analyze_dnf_patterns([])
    assert empty.most_common_cause is None
    assert empty.preventive_recommendations == []


def test_race_limiter_distribution():
    distribution = analyze_race_limiters([
        _race(biggest_limiter=LimiterType.HEAT), _race(biggest_limiter=LimiterType.HEAT), _race()
    ])
    assert distribution[LimiterType.HEAT] == 2
    assert sum(distribution.values()) == 2


def test_pain_patterns_group_training_and_race_legs():
    patterns = analyze_pain_patterns(
        [_daily(pain_location="left knee"), _daily(pain_location="left knee"),
         _daily(pain_location="None"), _daily(pain_location="hip")],
        [_race(biggest_limiter=LimiterType.LEGS, limiter_notes="quads gone at km 30"),
         _race(biggest_limiter=LimiterType.LEGS), _race(biggest_limiter=LimiterType.HEAT, limiter_notes="hot")]
    )

    assert set(patterns) == {"left knee", "hip", "race_legs"}
    assert patterns["left knee"].training_occurrences == 2
    assert patterns["left knee"].severity == "low"
    assert patterns["race_legs"].race_occurrences == 1
    assert patterns["race_legs"].training_occurrences == 0
    assert patterns["race_legs"].severity == "high"
    assert analyze_pain_patterns([], []) == {}


# ---------------------------------------------------------------------------
# Ajustements
# ---------------------------------------------------------------------------

def test_high_fatigue_cuts_volume_and_adds_rest():
    adjustment = generate_micro_adjustment(_daily(fatigue=8, sleep_quality=4))

    assert adjustment.volume_change_percent == -15.0
    assert adjustment.rest_days_added == 1
    assert adjustment.target_days == 7
    assert len(adjustment.reason.split("\n")) == 2


def test_fresh_athlete_gets_small_increase():
    adjustment = generate_micro_adjustment(_daily(fatigue=2, feel=9))
    assert adjustment.volume_change_percent == 5.0
    assert adjustment.rest_days_added == 0


def test_pain_reduces_intensity_only():
    adjustment = generate_micro_adjustment(_daily(pain_location="Achilles"))
    assert adjustment.intensity_change_percent == -15.0
    assert adjustment.volume_change_percent == 0.0


def test_missing_sleep_score_changes_nothing():
    adjustment = generate_micro_adjustment(_daily(fatigue=5))
    assert adjustment.volume_change_percent == 0.0
    assert adjustment.reason == "Minor adjustments based on feedback"
    assert adjustment.modifications == []


def test_macro_adjustment_for_hard_mountain_race():
    adjustment = generate_macro_adjustment(_race(
        biggest_limiter=LimiterType.STOMACH, climbing_difficulty=4, downhill_difficulty=5
    ))

    assert adjustment.target_weeks == 8
    assert adjustment.terrain_exposure.vertical_gain_increase_percent == 20
    assert adjustment.terrain_exposure.technical_terrain_sessions == 2
    assert adjustment.training_emphasis == ['vertical_gain', 'downhill_durability', 'eccentric_strength']
    assert len(adjustment.nutrition_protocol) == 3


def test_dnf_recovery_protocol_ramps_volume():
    protocol = generate_recovery_protocol(_dnf(DNFCause.INJURY, km=62.5))

    assert protocol.start_date == DAY + timedelta(days=2)
    assert protocol.volume_ramp() == [40.0, 60.0]
    assert not protocol.completed
    assert "Comprehensive injury assessment" in protocol.root_cause_protocol
    assert protocol.reason == "Recovery protocol for DNF caused by injury at 62.5km"


def test_dnf_with_unlisted_cause_still_ramps():
    protocol = generate_recovery_protocol(_dnf(DNFCause.EQUIPMENT))
    assert protocol.volume_ramp() == [40.0, 60.0]
    assert protocol.root_cause_protocol == []


def test_pacing_model_adjusts_hard_factors_only():
    factors = update_pacing_model(_race(climbing_difficulty=5, heat_perception=3), {'climbing': 1.0, 'heat': 1.0})
    assert factors['climbing'] == pytest.approx(1.10)
    assert factors['heat'] == 1.0


def test_nutrition_reliability_counts_gi_dnf_twice():
    model = update_nutrition_model(
        [_race(fuel_log="gels every 30 min"), _race(biggest_limiter=LimiterType.STOMACH)],
        [_dnf(DNFCause.STOMACH)]
    )
    assert model.reliability_score == pytest.approx(25.0)
    assert model.recommendations[0].startswith("Critical")
    assert model.successful_strategies == ["Successful: gels every 30 min"]
    assert len(model.problematic_areas) == 2

    assert update_nutrition_model([], []).reliability_score == 50.0


def test_injury_prevention_matches_locations():
    plan = activate_injury_prevention(["Right KNEE", "achilles tendon"])
    assert "Single-leg squats" in plan.exercises
    assert "Eccentric heel drops" in plan.exercises
    assert "Nordic curls" not in plan.exercises
    assert len(plan.protocol) == 3
