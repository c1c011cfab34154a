"""
Tests de la détermination de phase et des semaines allégées
"""
import pytest

from core.phase import determine_phase, is_recovery_week
from models.training_plan import TrainingPhase


@pytest.mark.parametrize("days_to_race,expected", [
    (None, TrainingPhase.MAINTENANCE),
    (200, TrainingPhase.BASE),
    (113, TrainingPhase.BASE),
    (112, TrainingPhase.BUILD),
    (60, TrainingPhase.BUILD),
    (56, TrainingPhase.PEAK),
    (30, TrainingPhase.PEAK),
    (21, TrainingPhase.TAPER),
    (10, TrainingPhase.TAPER),
    (7, TrainingPhase.RACE_WEEK),
    (3, TrainingPhase.RACE_WEEK),
    (0, TrainingPhase.RACE_WEEK),
    (-3, TrainingPhase.RECOVERY),
    (-7, TrainingPhase.RECOVERY),
    (-8, TrainingPhase.MAINTENANCE),
])
def test_phase_from_days_to_race(days_to_race, expected):
    assert determine_phase(days_to_race) == expected


def test_custom_thresholds():
    thresholds = {'base': 140, 'build': 70, 'peak': 28, 'taper': 14, 'recovery_window': 3}
    assert determine_phase(120, thresholds) == TrainingPhase.BUILD
    assert determine_phase(10, thresholds) == TrainingPhase.RACE_WEEK
    assert determine_phase(-5, thresholds) == TrainingPhase.MAINTENANCE


def test_recovery_week_pattern():
    assert [is_recovery_week(w, TrainingPhase.BASE) for w in range(1, 9)] == \
        [False, False, False, True, False, False, False, True]
    assert is_recovery_week(3, TrainingPhase.BUILD, "2:1")
    assert not is_recovery_week(4, TrainingPhase.TAPER)
    assert not is_recovery_week(4, TrainingPhase.MAINTENANCE)
