"""
Tests du classifieur d'activités: groupes de charge et éligibilité ACWR
"""
import pytest

from core.activity_classifier import (
    ActivityClassifier, CARDIO_ACTIVITIES, classify_activity, get_classification_explanation
)
from models.activity import ActivityGroup


@pytest.mark.parametrize("activity_type", ["Run", "TrailRun", "Ride", "Hike", "NordicSki", "Swim"])
def test_cardio_types_are_eligible(activity_type):
    result = classify_activity(activity_type)
    assert result.group == ActivityGroup.CARDIO
    assert result.acwr_eligible


@pytest.mark.parametrize("activity_type,group", [
    ("WeightTraining", ActivityGroup.STRENGTH),
    ("Yoga", ActivityGroup.STRENGTH),
    ("Crossfit", ActivityGroup.STRENGTH),
    ("Tennis", ActivityGroup.SKILL),
    ("RockClimbing", ActivityGroup.SKILL),
])
def test_strength_and_skill_never_eligible(activity_type, group):
    result = classify_activity(activity_type)
    assert result.group == group
    assert not result.acwr_eligible


def test_ebike_counts_only_with_elevated_heart_rate():
    classifier = ActivityClassifier()

    assert classifier.classify("EBikeRide", has_heart_rate=True, avg_heart_rate=135).acwr_eligible
    assert not classifier.classify("EBikeRide", has_heart_rate=True, avg_heart_rate=110).acwr_eligible
    assert not classifier.classify("EBikeRide", has_heart_rate=True, avg_heart_rate=120).acwr_eligible
    no_hr = classifier.classify("EBikeRide")
    assert no_hr.group == ActivityGroup.EXCLUDED
    assert not no_hr.acwr_eligible


def test_adventure_race_depends_on_endurance_mode():
    classifier = ActivityClassifier()
    assert classifier.classify("AdventureRace", is_endurance_mode=True).group == ActivityGroup.CARDIO
    assert classifier.classify("AdventureRace").group == ActivityGroup.SKILL


def test_unknown_type_is_excluded():
    result = classify_activity("UnderwaterHockeyDeluxe")
    assert result.group == ActivityGroup.EXCLUDED
    assert not result.acwr_eligible
    assert "UnderwaterHockeyDeluxe" in result.reason


def test_strength_plus_run_only_counts_run(make_activity):
    """Une séance de musculation de 60 min et un footing de 45 min: seul le footing compte"""
    activities = [
        make_activity(type="WeightTraining", minutes=60),
        make_activity(type="Run", minutes=45, distance_km=8.0),
    ]
    aggregate = ActivityClassifier().aggregate_load(activities)

    assert aggregate.total_eligible_minutes == 45
    assert aggregate.included_count == 1
    assert aggregate.excluded_count == 1
    assert aggregate.breakdown.strength == 60
    assert aggregate.breakdown.cardio == 45


def test_breakdown_sums_to_total_duration(make_activity):
    activities = [
        make_activity(type="Run", minutes=40),
        make_activity(type="Yoga", minutes=30),
        make_activity(type="Soccer", minutes=90),
        make_activity(type="EBikeRide", minutes=75, heart_rate=100),
        make_activity(type="Mystery", minutes=15),
        make_activity(type="TrailRun", minutes=120),
    ]
    aggregate = ActivityClassifier().aggregate_load(activities)

    assert aggregate.breakdown.total() == pytest.approx(sum(a.duration_minutes for a in activities))
    assert aggregate.included_count + aggregate.excluded_count == len(activities)
    assert aggregate.total_eligible_minutes == 160


def test_empty_list_aggregates_to_zero():
    aggregate = ActivityClassifier().aggregate_load([])
    assert aggregate.total_eligible_minutes == 0
    assert aggregate.breakdown.total() == 0


def test_validate_classification_flags_suspicious_eligible_types(make_activity, log_messages):
    classifier = ActivityClassifier(cardio=CARDIO_ACTIVITIES | {"HIITRun"})
    activities = [make_activity(type="HIITRun"), make_activity(type="Run"), make_activity(type="WeightTraining")]

    warnings = classifier.validate_classification(activities)

    assert len(warnings) == 1
    assert "HIITRun" in warnings[0]
    assert any("HIITRun" in m for m in log_messages)


def test_validate_classification_with_default_rules_is_clean(make_activity):
    activities = [make_activity(type=t) for t in ("Run", "Workout", "WeightTraining", "Tennis")]
    assert ActivityClassifier().validate_classification(activities) == []


def test_every_group_has_an_explanation():
    for group in ActivityGroup:
        assert get_classification_explanation(group)
