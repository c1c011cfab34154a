"""
Modèle de données pour le contexte de décision (instantané immuable)
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional
from enum import Enum

from .athlete import AthleteProfile
from .metrics import LoadRecommendation, TrendDirection, EventLoad
from .race import RaceEntry
from .training_plan import WeeklyPlan


class Provenance(str, Enum):
    """Origine d'un signal: mesure réelle ou valeur par défaut"""
    REAL = "real"
    DEFAULT = "default"


class HeatStressLevel(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    ORANGE = "orange"
    RED = "red"
    BLACK = "black"


class AcwrZone(str, Enum):
    UNDERLOAD = "underload"
    OPTIMAL = "optimal"
    CAUTION = "caution"
    HIGH_RISK = "high_risk"
    EXTREME_RISK = "extreme_risk"


class RiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    EXTREME = "extreme"


class Archetype(str, Enum):
    """Archétypes de motivation"""
    PERFORMER = "performer"
    ADVENTURER = "adventurer"
    MINDFUL = "mindful"
    HEALTH = "health"
    TRANSFORMER = "transformer"
    CONNECTOR = "connector"


class _Signal(BaseModel):
    model_config = ConfigDict(frozen=True)

    provenance: Provenance = Provenance.REAL


class WeatherReading(BaseModel):
    """Relevé brut fourni par le collaborateur météo"""
    model_config = ConfigDict(frozen=True)

    temperature: float
    humidity: float = Field(..., ge=0, le=100)
    heat_index: Optional[float] = None
    wind_speed: Optional[float] = None
    conditions: str = "Clear"


class ClimateContext(_Signal):
    temperature: float
    humidity: float
    heat_index: Optional[float] = None
    wind_speed: Optional[float] = None
    conditions: str
    level: HeatStressLevel
    wbgt: float


class AcwrContext(_Signal):
    ratio: float
    zone: AcwrZone
    risk_level: RiskLevel
    trend: TrendDirection = TrendDirection.STABLE
    recommendation: LoadRecommendation
    acute_load: float = 0.0
    chronic_load: float = 0.0
    event_load: EventLoad = Field(default_factory=EventLoad)
    sustainable: bool = True
    advice: str = ""


class MotivationProfile(_Signal):
    scores: dict[Archetype, float]
    dominant: Archetype
    confidence: float = Field(..., ge=0, le=1)


class RaceCalendarContext(_Signal):
    races: list[RaceEntry] = Field(default_factory=list)
    main_race: Optional[RaceEntry] = None
    next_race: Optional[RaceEntry] = None
    days_to_main_race: Optional[int] = None
    days_to_next_race: Optional[int] = None

    def has_race(self) -> bool:
        return self.main_race is not None


class TrainingHistoryContext(_Signal):
    completion_rate: float = Field(0.0, ge=0, le=1)
    average_fatigue: float = 5.0
    missed_workouts: int = 0
    days_since_hard_workout: int = 7
    sessions_last_28_days: int = 0


class LocationContext(_Signal):
    current_elevation_m: float = 0.0
    recent_elevation_gain_m: float = 0.0
    terrain_type: str = "road"
    is_travel: bool = False


class SignalTimestamps(BaseModel):
    """Date de dernière mise à jour connue de chaque source"""
    model_config = ConfigDict(frozen=True)

    acwr: Optional[datetime] = None
    weather: Optional[datetime] = None
    races: Optional[datetime] = None


class AdaptiveContext(BaseModel):
    """Instantané de décision consommé par la planification"""
    model_config = ConfigDict(frozen=True)

    athlete: AthleteProfile
    reference_date: date
    plan: Optional[WeeklyPlan] = None
    acwr: AcwrContext
    climate: ClimateContext
    motivation: MotivationProfile
    races: RaceCalendarContext
    history: TrainingHistoryContext
    location: LocationContext

    built_at: datetime
    refreshed_at: SignalTimestamps = Field(default_factory=SignalTimestamps)

    def degraded_signals(self) -> list[str]:
        """Signaux construits à partir de valeurs par défaut"""
        signals = {
            'acwr': self.acwr,
            'climate': self.climate,
            'motivation': self.motivation,
            'races': self.races,
            'history': self.history,
            'location': self.location,
        }
        return [name for name, s in signals.items() if s.provenance == Provenance.DEFAULT]

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded_signals())
