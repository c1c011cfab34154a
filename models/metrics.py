"""
Modèle de données pour la charge d'entraînement (ACWR)
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import date
from typing import Optional
from enum import Enum

from .activity import LoadBreakdown


class LoadRecommendation(str, Enum):
    """Recommandation de stress d'entraînement"""
    INCREASE = "increase"
    MAINTAIN = "maintain"
    REDUCE = "reduce"
    TAPER = "taper"


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


class EventLoad(BaseModel):
    """Charge des courses/événements calendrier, en km-équivalent"""
    model_config = ConfigDict(frozen=True)

    acute_km: float = 0.0
    chronic_km: float = 0.0
    event_count: int = 0


class TrainingLoad(BaseModel):
    """Charge d'entraînement sur fenêtre glissante de 28 jours"""
    model_config = ConfigDict(frozen=True)

    reference_date: date

    # Charge aiguë et chronique (minutes éligibles ACWR)
    acute_load: float = Field(
        default=0.0,
        description="Minutes éligibles des 7 derniers jours"
    )
    chronic_load: float = Field(
        default=0.0,
        description="Minutes éligibles des 28 derniers jours / 4"
    )
    ratio: float = Field(1.0, description="Ratio charge aiguë/chronique")

    breakdown: LoadBreakdown = Field(default_factory=LoadBreakdown)
    recommendation: LoadRecommendation = LoadRecommendation.MAINTAIN

    # Contexte auxiliaire (unités différentes, hors ratio)
    event_load: EventLoad = Field(default_factory=EventLoad)

    included_count: int = 0
    excluded_count: int = 0


class AdaptationScale(BaseModel):
    """Facteur d'échelle appliqué au volume selon l'ACWR"""
    scale: float
    reason: str


class LoadTrend(BaseModel):
    """Tendance de charge hebdomadaire"""
    weekly_minutes: list[float] = Field(default_factory=list, description="Du plus ancien au plus récent")
    direction: TrendDirection = TrendDirection.STABLE
    change_percent: Optional[float] = None
