"""
Modèle de données pour les activités enregistrées et leur classification ACWR
"""
from pydantic import BaseModel, ConfigDict, Field, computed_field
from datetime import datetime
from typing import Optional
from enum import Enum


class ActivityGroup(str, Enum):
    """Catégorie de charge physiologique d'une activité"""
    CARDIO = "cardio"
    STRENGTH = "strength"
    SKILL = "skill"
    EXCLUDED = "excluded"


class Activity(BaseModel):
    """Activité enregistrée (immuable une fois loguée)"""
    model_config = ConfigDict(frozen=True)

    type: str = Field(..., description="Type d'activité (ex: 'Run', 'TrailRun')")
    duration_minutes: float = Field(..., ge=0, description="Durée en minutes")
    distance_km: Optional[float] = Field(None, ge=0, description="Distance en km")
    heart_rate_avg: Optional[float] = Field(None, gt=0, description="FC moyenne")
    timestamp: datetime

    elevation_gain_m: Optional[float] = Field(None, ge=0, description="Dénivelé positif")
    is_endurance_mode: bool = Field(False, description="Mode endurance (raids)")
    time_in_zones: Optional[list[float]] = Field(
        None,
        description="Minutes passées en Z1..Z5"
    )

    @computed_field
    @property
    def pace_min_per_km(self) -> Optional[float]:
        """Allure moyenne en min/km"""
        if not self.distance_km:
            return None
        return self.duration_minutes / self.distance_km

    def has_heart_rate(self) -> bool:
        return self.heart_rate_avg is not None


class ActivityClassification(BaseModel):
    """Résultat de classification (dérivé, jamais persisté)"""
    model_config = ConfigDict(frozen=True)

    group: ActivityGroup
    acwr_eligible: bool
    reason: str


class LoadBreakdown(BaseModel):
    """Minutes cumulées par groupe"""
    cardio: float = 0.0
    strength: float = 0.0
    skill: float = 0.0
    excluded: float = 0.0

    def total(self) -> float:
        return self.cardio + self.strength + self.skill + self.excluded


class LoadAggregate(BaseModel):
    """Agrégat de charge d'une liste d'activités"""
    total_eligible_minutes: float = 0.0
    included_count: int = 0
    excluded_count: int = 0
    breakdown: LoadBreakdown = Field(default_factory=LoadBreakdown)
