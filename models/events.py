"""
Taxonomie des événements publiés par le moteur
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union
from enum import Enum

from .adjustments import MicroAdjustment, MacroAdjustment, RecoveryProtocol
from .feedback import DailyFeedback, RaceFeedback, DNFEvent, FeedbackInsight, SessionImportance


class EngineEvent(str, Enum):
    """Canaux du bus d'événements"""
    TRAINING_FEEDBACK_SAVED = "feedback:training-saved"
    RACE_FEEDBACK_SAVED = "feedback:race-saved"
    DNF_SAVED = "feedback:dnf-saved"
    MICRO_ADJUSTMENT = "plan:micro-adjustment"
    MACRO_ADJUSTMENT = "plan:macro-adjustment"
    RECOVERY_PROTOCOL = "plan:recovery-protocol"
    INSIGHT_GENERATED = "coach:insight-generated"
    MODELS_UPDATE = "models:update"


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True)


class TrainingFeedbackSaved(_Payload):
    feedback: DailyFeedback
    weight: float
    session_importance: SessionImportance


class RaceFeedbackSaved(_Payload):
    feedback: RaceFeedback
    weight: float
    log_entry_id: Optional[str] = None


class DNFSaved(_Payload):
    dnf_event: DNFEvent
    weight: float
    log_entry_id: Optional[str] = None


class MicroAdjustmentReady(_Payload):
    adjustment: MicroAdjustment
    reason: str


class MacroAdjustmentReady(_Payload):
    adjustment: MacroAdjustment
    reason: str


class RecoveryProtocolReady(_Payload):
    plan: RecoveryProtocol
    reason: str


class InsightsGenerated(_Payload):
    insights: list[FeedbackInsight] = Field(default_factory=list)
    weight: float


class ModelsUpdate(_Payload):
    models: list[str]
    weight: float
    source: str


EventPayload = Union[
    TrainingFeedbackSaved, RaceFeedbackSaved, DNFSaved,
    MicroAdjustmentReady, MacroAdjustmentReady, RecoveryProtocolReady,
    InsightsGenerated, ModelsUpdate,
]

# Schéma de payload attendu pour chaque canal
EVENT_PAYLOADS: dict[EngineEvent, type] = {
    EngineEvent.TRAINING_FEEDBACK_SAVED: TrainingFeedbackSaved,
    EngineEvent.RACE_FEEDBACK_SAVED: RaceFeedbackSaved,
    EngineEvent.DNF_SAVED: DNFSaved,
    EngineEvent.MICRO_ADJUSTMENT: MicroAdjustmentReady,
    EngineEvent.MACRO_ADJUSTMENT: MacroAdjustmentReady,
    EngineEvent.RECOVERY_PROTOCOL: RecoveryProtocolReady,
    EngineEvent.INSIGHT_GENERATED: InsightsGenerated,
    EngineEvent.MODELS_UPDATE: ModelsUpdate,
}
