"""
Models package for the adaptive training decision engine
"""
from .errors import (
    EngineError, PlanInvariantError, PlanLengthError, WeekAlignmentError,
    RestDayViolationError, WorkoutParityError, InvalidObservationError,
    AthleteNotFoundError, WeatherUnavailableError
)
from .activity import Activity, ActivityGroup, ActivityClassification, LoadBreakdown, LoadAggregate
from .metrics import TrainingLoad, LoadRecommendation, TrendDirection, EventLoad, AdaptationScale, LoadTrend
from .athlete import (
    AthleteProfile, TrainingConstraints, ExperienceLevel, AthleteCategory, TerrainType, derive_rest_days
)
from .training_plan import Session, SessionType, DailyPlan, WeeklyPlan, TrainingPhase
from .race import Race, CalendarEvent, RaceEntry, RacePriority, RaceType
from .feedback import (
    DailyFeedback, RaceFeedback, DNFEvent, FeedbackEvent, FeedbackInsight, FeedbackType,
    SessionImportance, EventType, CompletionStatus, LimiterType, DNFCause
)
from .adjustments import MicroAdjustment, MacroAdjustment, RecoveryProtocol, RecoveryWeek, PlanAdjustment
from .context import (
    AdaptiveContext, Provenance, ClimateContext, AcwrContext, MotivationProfile, RaceCalendarContext,
    TrainingHistoryContext, LocationContext, WeatherReading, HeatStressLevel, AcwrZone, RiskLevel, Archetype
)
from .events import EngineEvent, EVENT_PAYLOADS

__all__ = [
    # Errors
    'EngineError',
    'PlanInvariantError',
    'PlanLengthError',
    'WeekAlignmentError',
    'RestDayViolationError',
    'WorkoutParityError',
    'InvalidObservationError',
    'AthleteNotFoundError',
    'WeatherUnavailableError',

    # Activity & load
    'Activity',
    'ActivityGroup',
    'ActivityClassification',
    'LoadBreakdown',
    'LoadAggregate',
    'TrainingLoad',
    'LoadRecommendation',
    'TrendDirection',
    'EventLoad',
    'AdaptationScale',
    'LoadTrend',

    # Athlete
    'AthleteProfile',
    'TrainingConstraints',
    'ExperienceLevel',
    'AthleteCategory',
    'TerrainType',
    'derive_rest_days',

    # Training Plan
    'Session',
    'SessionType',
    'DailyPlan',
    'WeeklyPlan',
    'TrainingPhase',

    # Races
    'Race',
    'CalendarEvent',
    'RaceEntry',
    'RacePriority',
    'RaceType',

    # Feedback
    'DailyFeedback',
    'RaceFeedback',
    'DNFEvent',
    'FeedbackEvent',
    'FeedbackInsight',
    'FeedbackType',
    'SessionImportance',
    'EventType',
    'CompletionStatus',
    'LimiterType',
    'DNFCause',

    # Adjustments
    'MicroAdjustment',
    'MacroAdjustment',
    'RecoveryProtocol',
    'RecoveryWeek',
    'PlanAdjustment',

    # Context
    'AdaptiveContext',
    'Provenance',
    'ClimateContext',
    'AcwrContext',
    'MotivationProfile',
    'RaceCalendarContext',
    'TrainingHistoryContext',
    'LocationContext',
    'WeatherReading',
    'HeatStressLevel',
    'AcwrZone',
    'RiskLevel',
    'Archetype',

    # Events
    'EngineEvent',
    'EVENT_PAYLOADS',
]
