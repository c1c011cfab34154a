"""
Abonnés du bus: retours enregistrés -> ajustements, enseignements, modèles
"""
from typing import Optional

from loguru import logger

from core.adaptive_response import generate_micro_adjustment, generate_macro_adjustment, generate_recovery_protocol
from core.event_bus import EventBus
from core.feedback_processor import (
    classify_feedback, process_daily_feedback, process_race_feedback, process_dnf_feedback
)
from core.personalization import PersonalizationRegistry
from models.events import (
    EngineEvent, TrainingFeedbackSaved, RaceFeedbackSaved, DNFSaved, MicroAdjustmentReady,
    MacroAdjustmentReady, RecoveryProtocolReady, InsightsGenerated, ModelsUpdate
)
from models.feedback import DailyFeedback, RaceFeedback, DNFEvent, FeedbackEvent
from services.collaborators import FeedbackStore


DNF_MODELS = ['recovery', 'readiness', 'training_stress', 'injury_risk']
READINESS_MODEL = 'readiness'


def _unique(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))


class FeedbackHandlers:
    """
    Relie les canaux feedback:* aux générateurs de réponse

    Chaque handler publie son ajustement, puis les enseignements, puis la
    liste des modèles à mettre à jour. Les observations chiffrées d'un
    athlète alimentent son modèle de disponibilité (readiness).
    """

    def __init__(self, bus: EventBus, registry: Optional[PersonalizationRegistry] = None,
                 store: Optional[FeedbackStore] = None):
        self.bus = bus
        self.registry = registry or PersonalizationRegistry()
        self.store = store
        self._subscriptions = [
            (EngineEvent.TRAINING_FEEDBACK_SAVED, self.on_training_feedback),
            (EngineEvent.RACE_FEEDBACK_SAVED, self.on_race_feedback),
            (EngineEvent.DNF_SAVED, self.on_dnf),
        ]
        self.attached = False

    def attach(self) -> None:
        if self.attached:
            logger.warning("Handlers de feedback déjà abonnés")
            return
        for event, handler in self._subscriptions:
            self.bus.subscribe(event, handler)
        self.attached = True

    def detach(self) -> None:
        for event, handler in self._subscriptions:
            self.bus.unsubscribe(event, handler)
        self.attached = False

    def record(self, event: FeedbackEvent) -> None:
        """
        Enregistre un retour (si un store est fourni) et publie l'événement saved
        """
        if self.store is not None:
            self.store.append(event)
        feedback_type, weight = classify_feedback(event)
        logger.info(f"Retour {feedback_type.value} de {event.athlete_id} (poids {weight:g})")

        if isinstance(event, DNFEvent):
            self.bus.publish(EngineEvent.DNF_SAVED, DNFSaved(
                dnf_event=event, weight=weight, log_entry_id=event.log_entry_id
            ))
        elif isinstance(event, RaceFeedback):
            self.bus.publish(EngineEvent.RACE_FEEDBACK_SAVED, RaceFeedbackSaved(
                feedback=event, weight=weight, log_entry_id=event.log_entry_id
            ))
        else:
            self.bus.publish(EngineEvent.TRAINING_FEEDBACK_SAVED, TrainingFeedbackSaved(
                feedback=event, weight=weight, session_importance=event.session_importance
            ))

    def on_training_feedback(self, payload: TrainingFeedbackSaved) -> None:
        feedback = payload.feedback
        feedback_type, _ = classify_feedback(feedback)
        insights = process_daily_feedback(feedback, feedback_type)
        adjustment = generate_micro_adjustment(feedback)

        self._observe_readiness(feedback, payload.weight)
        self.bus.publish(EngineEvent.MICRO_ADJUSTMENT, MicroAdjustmentReady(
            adjustment=adjustment, reason=f"Training feedback with {payload.weight:g}× weight"
        ))
        self.bus.publish(EngineEvent.INSIGHT_GENERATED, InsightsGenerated(insights=insights, weight=payload.weight))

    def on_race_feedback(self, payload: RaceFeedbackSaved) -> None:
        insights = process_race_feedback(payload.feedback)
        adjustment = generate_macro_adjustment(payload.feedback)

        self.bus.publish(EngineEvent.MACRO_ADJUSTMENT, MacroAdjustmentReady(
            adjustment=adjustment, reason=f"Race feedback with {payload.weight:g}× weight"
        ))
        self.bus.publish(EngineEvent.INSIGHT_GENERATED, InsightsGenerated(insights=insights, weight=payload.weight))
        self.bus.publish(EngineEvent.MODELS_UPDATE, ModelsUpdate(
            models=_unique([m for i in insights for m in i.affected_models]),
            weight=payload.weight,
            source='race_feedback'
        ))

    def on_dnf(self, payload: DNFSaved) -> None:
        event = payload.dnf_event
        insights = process_dnf_feedback(event)
        protocol = generate_recovery_protocol(event)

        self.bus.publish(EngineEvent.RECOVERY_PROTOCOL, RecoveryProtocolReady(
            plan=protocol, reason=f"DNF due to {event.dnf_cause.value} with {payload.weight:g}× weight"
        ))
        self.bus.publish(EngineEvent.INSIGHT_GENERATED, InsightsGenerated(insights=insights, weight=payload.weight))
        self.bus.publish(EngineEvent.MODELS_UPDATE, ModelsUpdate(
            models=list(DNF_MODELS), weight=payload.weight, source='dnf_event'
        ))

    def _observe_readiness(self, feedback: DailyFeedback, weight: float) -> None:
        """Ressenti expliqué par (constante, fatigue, sommeil) quand tout est renseigné"""
        if feedback.feel is None or feedback.fatigue is None or feedback.sleep_quality is None:
            return
        self.registry.update(
            feedback.athlete_id, READINESS_MODEL,
            [1.0, float(feedback.fatigue), float(feedback.sleep_quality)],
            float(feedback.feel), weight
        )
