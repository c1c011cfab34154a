"""
Modèle de données pour les retours athlète (quotidiens, course, abandon)
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import date
from typing import Literal, Optional, Union
from enum import Enum


class FeedbackType(str, Enum):
    """Type de retour, détermine le poids"""
    TRAINING_NORMAL = "training_normal"
    TRAINING_KEY_WORKOUT = "training_key_workout"
    RACE_SIMULATION = "race_simulation"
    RACE = "race"
    DNF = "dnf"


class SessionImportance(str, Enum):
    NORMAL = "normal"
    KEY_WORKOUT = "key_workout"
    LONG_RUN = "long_run"
    HEAT_SESSION = "heat_session"
    BACK_TO_BACK = "back_to_back"


class EventType(str, Enum):
    RACE = "race"
    SIMULATION = "simulation"
    TIME_TRIAL = "time_trial"


class CompletionStatus(str, Enum):
    COMPLETED = "completed"
    DNF = "dnf"
    DNS = "dns"


class LimiterType(str, Enum):
    """Principal facteur limitant en course"""
    LEGS = "legs"
    STOMACH = "stomach"
    HEAT = "heat"
    PACING = "pacing"
    MINDSET = "mindset"
    EQUIPMENT = "equipment"
    OTHER = "other"


class DNFCause(str, Enum):
    """Cause d'abandon"""
    INJURY = "injury"
    HEAT = "heat"
    STOMACH = "stomach"
    PACING = "pacing"
    MENTAL = "mental"
    EQUIPMENT = "equipment"
    OTHER = "other"


class DailyFeedback(BaseModel):
    """Retour quotidien après une séance"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["daily"] = "daily"
    athlete_id: str
    feedback_date: date
    session_importance: SessionImportance = SessionImportance.NORMAL

    feel: Optional[int] = Field(None, ge=1, le=10, description="Ressenti 1-10")
    effort: Optional[int] = Field(None, ge=1, le=10, description="Effort perçu 1-10")
    fatigue: Optional[int] = Field(None, ge=1, le=10, description="Fatigue 1-10")
    sleep_quality: Optional[int] = Field(None, ge=1, le=10, description="Sommeil 1-10")
    pain_location: Optional[str] = Field(None, description="Localisation douleur ('None' = aucune)")
    notes: Optional[str] = None

    def has_pain(self) -> bool:
        return bool(self.pain_location) and self.pain_location != "None"


class RaceFeedback(BaseModel):
    """Retour après une course ou une simulation"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["race"] = "race"
    athlete_id: str
    event_date: date
    event_type: EventType = EventType.RACE
    log_entry_id: Optional[str] = None

    climbing_difficulty: Optional[int] = Field(None, ge=1, le=5)
    downhill_difficulty: Optional[int] = Field(None, ge=1, le=5)
    heat_perception: Optional[int] = Field(None, ge=1, le=5)
    technicality: Optional[int] = Field(None, ge=1, le=5)

    biggest_limiter: Optional[LimiterType] = None
    limiter_notes: Optional[str] = None
    fuel_log: Optional[str] = None
    issues_start_km: Optional[float] = Field(None, ge=0)
    completion_status: CompletionStatus = CompletionStatus.COMPLETED

    def is_simulation(self) -> bool:
        return self.event_type == EventType.SIMULATION


class DNFEvent(BaseModel):
    """Abandon (Did Not Finish)"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["dnf"] = "dnf"
    athlete_id: str
    event_date: date
    dnf_cause: DNFCause
    km_stopped: float = Field(..., ge=0)
    had_warning_signs: bool = False
    dnf_cause_notes: Optional[str] = None
    log_entry_id: Optional[str] = None
    auto_detected: bool = False
    user_confirmed: bool = True


FeedbackEvent = Union[DailyFeedback, RaceFeedback, DNFEvent]


class FeedbackInsight(BaseModel):
    """Enseignement tiré d'un retour, avec les modèles impactés"""
    model_config = ConfigDict(frozen=True)

    source_type: FeedbackType
    confidence: float
    weight: float
    insight: str
    insight_date: date
    affected_models: list[str] = Field(default_factory=list)
