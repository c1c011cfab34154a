"""
Ajustements de plan émis par le générateur de réponse adaptative

Chaque variante porte un discriminant `kind` et un schéma fixe.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import date
from typing import Annotated, Literal, Optional, Union


class PlanModification(BaseModel):
    model_config = ConfigDict(frozen=True)

    modification_date: date
    change: str


class MicroAdjustment(BaseModel):
    """Ajustement au niveau séance (issu d'un retour quotidien)"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["micro"] = "micro"
    target_days: int = 7
    volume_change_percent: float = 0.0
    intensity_change_percent: float = 0.0
    rest_days_added: int = 0
    reason: str
    modifications: list[PlanModification] = Field(default_factory=list)


class TerrainExposure(BaseModel):
    model_config = ConfigDict(frozen=True)

    vertical_gain_increase_percent: float
    technical_terrain_sessions: int


class MacroAdjustment(BaseModel):
    """Ajustement de phase/volume (issu d'un retour de course)"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["macro"] = "macro"
    target_weeks: int = 8
    training_emphasis: list[str] = Field(default_factory=list)
    terrain_exposure: Optional[TerrainExposure] = None
    nutrition_protocol: list[str] = Field(default_factory=list)
    reason: str


class RecoveryWeek(BaseModel):
    model_config = ConfigDict(frozen=True)

    week_number: int
    volume_percentage: float = Field(..., description="% du volume de référence")
    intensity_guidelines: list[str] = Field(default_factory=list)
    focus_areas: list[str] = Field(default_factory=list)


class RecoveryProtocol(BaseModel):
    """Protocole de reprise après abandon"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["dnf_recovery"] = "dnf_recovery"
    start_date: date
    weeks: list[RecoveryWeek]
    root_cause_protocol: list[str] = Field(default_factory=list)
    reason: str
    completed: bool = False

    def volume_ramp(self) -> list[float]:
        """Pourcentages de volume semaine par semaine"""
        return [w.volume_percentage for w in self.weeks]


PlanAdjustment = Annotated[
    Union[MicroAdjustment, MacroAdjustment, RecoveryProtocol],
    Field(discriminator="kind"),
]
