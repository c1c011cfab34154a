"""
Modèle de données pour le profil athlète et ses contraintes d'entraînement
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from enum import Enum

from config.settings import (
    DEFAULT_DAYS_PER_WEEK, DEFAULT_LONG_RUN_DAY, DEFAULT_WEEKLY_KM,
    DEFAULT_WEEKLY_KM_CAT2, REST_DAY_PRIORITY
)


class ExperienceLevel(str, Enum):
    """Niveau d'expérience en course à pied"""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    ELITE = "elite"


class AthleteCategory(str, Enum):
    """Catégorie de volume (Cat1 = loisir, Cat2 = volume élevé)"""
    CAT1 = "Cat1"
    CAT2 = "Cat2"


class TerrainType(str, Enum):
    ROAD = "road"
    TRAIL = "trail"
    MOUNTAIN = "mountain"


def derive_rest_days(days_per_week: int) -> list[int]:
    """
    Dérive les jours de repos à partir du nombre de séances hebdomadaires

    Déterministe: toujours 7 - n jours distincts, choisis dans l'ordre
    REST_DAY_PRIORITY (lundi, vendredi, mercredi, dimanche...).

    Args:
        days_per_week: Nombre de jours d'entraînement (borné à 1-7)

    Returns:
        Liste triée des jours de repos (1=lundi)
    """
    days = max(1, min(7, days_per_week))
    return sorted(REST_DAY_PRIORITY[:7 - days])


class TrainingConstraints(BaseModel):
    """Contraintes dures de planification"""
    days_per_week: int = Field(DEFAULT_DAYS_PER_WEEK, ge=1, le=7)
    rest_days: Optional[list[int]] = Field(
        None,
        description="Jours de repos imposés (1=lundi). None = dérivés de days_per_week"
    )
    long_run_day: int = Field(DEFAULT_LONG_RUN_DAY, ge=1, le=7)

    @field_validator('rest_days')
    @classmethod
    def validate_rest_days(cls, v):
        """Jours compris entre 1 et 7, sans doublon"""
        if v is None:
            return v
        for day in v:
            if not 1 <= day <= 7:
                raise ValueError(f"Jour de repos invalide: {day} (attendu 1-7)")
        return sorted(set(v))

    def resolved_rest_days(self) -> list[int]:
        """Jours de repos effectifs: la saisie utilisateur prime sur la dérivation"""
        if self.rest_days is not None:
            return list(self.rest_days)
        return derive_rest_days(self.days_per_week)

    def training_days_count(self) -> int:
        """Nombre de jours d'entraînement réellement disponibles"""
        return min(self.days_per_week, 7 - len(self.resolved_rest_days()))


class AthleteProfile(BaseModel):
    """Profil d'un athlète utilisé par le moteur de planification"""
    athlete_id: str
    name: Optional[str] = None

    experience_level: ExperienceLevel = ExperienceLevel.INTERMEDIATE
    category: AthleteCategory = AthleteCategory.CAT1

    weekly_km_base: Optional[float] = Field(None, gt=0, description="Volume hebdo de référence")
    max_weekly_km: Optional[float] = Field(None, gt=0, description="Volume hebdo max toléré")

    threshold_pace_min_per_km: float = Field(5.0, gt=2, lt=15)
    preferred_terrain: TerrainType = TerrainType.ROAD
    max_heart_rate: Optional[int] = Field(None, gt=100, lt=230)

    constraints: TrainingConstraints = Field(default_factory=TrainingConstraints)

    @property
    def baseline_weekly_km(self) -> float:
        """Volume de référence (défaut selon la catégorie)"""
        if self.weekly_km_base:
            return self.weekly_km_base
        if self.category == AthleteCategory.CAT2:
            return DEFAULT_WEEKLY_KM_CAT2
        return DEFAULT_WEEKLY_KM

    @property
    def max_weekly_volume(self) -> float:
        return self.max_weekly_km or round(self.baseline_weekly_km * 1.5, 1)

    @property
    def easy_pace_min_per_km(self) -> float:
        """Allure facile: seuil + 15 %"""
        return round(self.threshold_pace_min_per_km * 1.15, 2)

    def estimated_weekly_vertical(self) -> float:
        """Dénivelé hebdo estimé (30 m/km en trail, 10 m/km sinon)"""
        per_km = 30 if self.preferred_terrain != TerrainType.ROAD else 10
        return self.baseline_weekly_km * per_km
