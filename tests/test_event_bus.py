"""
Tests du bus d'événements et de la chaîne retour -> ajustement -> modèles
"""
from datetime import date

import pytest

from core.event_bus import EventBus
from core.feedback_handlers import DNF_MODELS, FeedbackHandlers
from core.personalization import PersonalizationRegistry
from models.events import (
    EngineEvent, InsightsGenerated, MicroAdjustmentReady, ModelsUpdate, RecoveryProtocolReady
)
from models.adjustments import MicroAdjustment
from models.feedback import DailyFeedback, DNFCause, DNFEvent, LimiterType, RaceFeedback


DAY = date(2025, 3, 12)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def handlers(bus, feedback_store):
    handlers = FeedbackHandlers(bus, PersonalizationRegistry(), feedback_store)
    handlers.attach()
    yield handlers
    handlers.detach()


def test_publish_rejects_wrong_payload_type(bus):
    payload = ModelsUpdate(models=['recovery'], weight=1.0, source='test')
    with pytest.raises(TypeError):
        bus.publish(EngineEvent.MICRO_ADJUSTMENT, payload)
    assert len(bus.published) == 0


def test_history_keeps_only_recent_payloads():
    bus = EventBus(history_size=5)
    for index in range(20):
        bus.publish(EngineEvent.MODELS_UPDATE, ModelsUpdate(models=[], weight=1.0, source=str(index)))

    assert len(bus.published) == 5
    assert [p.source for p in bus.history(EngineEvent.MODELS_UPDATE)] == ['15', '16', '17', '18', '19']


def test_handlers_called_in_subscription_order(bus):
    calls = []
    bus.subscribe(EngineEvent.MODELS_UPDATE, lambda p: calls.append(("first", p.source)))
    bus.subscribe(EngineEvent.MODELS_UPDATE, lambda p: calls.append(("second", p.source)))

    bus.publish(EngineEvent.MODELS_UPDATE, ModelsUpdate(models=[], weight=1.0, source='x'))

    assert calls == [("first", "x"), ("second", "x")]


def test_handler_error_propagates_to_publisher(bus, log_messages):
    def broken(payload):
        raise RuntimeError("boom")

    bus.subscribe(EngineEvent.MODELS_UPDATE, broken)
    with pytest.raises(RuntimeError):
        bus.publish(EngineEvent.MODELS_UPDATE, ModelsUpdate(models=[], weight=1.0, source='x'))
    assert any(EngineEvent.MODELS_UPDATE.value in m for m in log_messages)


def test_unsubscribe_stops_delivery(bus):
    calls = []
    handler = calls.append
    bus.subscribe(EngineEvent.MICRO_ADJUSTMENT, handler)
    bus.unsubscribe(EngineEvent.MICRO_ADJUSTMENT, handler)

    bus.publish(EngineEvent.MICRO_ADJUSTMENT, MicroAdjustmentReady(
        adjustment=MicroAdjustment(reason="test"), reason="test"
    ))
    assert calls == []


def test_training_feedback_chain(bus, handlers, feedback_store):
    feedback = DailyFeedback(athlete_id="athlete-1", feedback_date=DAY, fatigue=9, feel=4, sleep_quality=6)

    handlers.record(feedback)

    assert feedback_store.events == [feedback]
    [micro] = bus.history(EngineEvent.MICRO_ADJUSTMENT)
    assert isinstance(micro, MicroAdjustmentReady)
    assert micro.adjustment.volume_change_percent == -10.0
    assert micro.reason == "Training feedback with 1× weight"
    [insights] = bus.history(EngineEvent.INSIGHT_GENERATED)
    assert len(insights.insights) == 1

    readiness = handlers.registry.get("athlete-1", "readiness")
    assert readiness is not None
    assert readiness.observations == 1


def test_incomplete_feedback_skips_readiness_model(bus, handlers):
    handlers.record(DailyFeedback(athlete_id="athlete-1", feedback_date=DAY, fatigue=5))
    assert handlers.registry.get("athlete-1", "readiness") is None


def test_race_feedback_publishes_macro_and_models(bus, handlers):
    handlers.record(RaceFeedback(
        athlete_id="athlete-1", event_date=DAY, biggest_limiter=LimiterType.HEAT, heat_perception=5
    ))

    [macro] = bus.history(EngineEvent.MACRO_ADJUSTMENT)
    assert macro.reason == "Race feedback with 5× weight"
    assert 'heat_adaptation' in macro.adjustment.training_emphasis
    [update] = bus.history(EngineEvent.MODELS_UPDATE)
    assert update.source == 'race_feedback'
    assert update.models == ['heat_adaptation', 'pacing', 'training_emphasis']
    assert update.weight == 5.0


def test_dnf_triggers_recovery_protocol_at_max_weight(bus):
    order = []
    for event in EngineEvent:
        bus.subscribe(event, lambda p, e=event: order.append(e))
    handlers = FeedbackHandlers(bus)
    handlers.attach()

    handlers.record(DNFEvent(athlete_id="athlete-1", event_date=DAY, dnf_cause=DNFCause.INJURY, km_stopped=42.0))

    assert order == [
        EngineEvent.DNF_SAVED, EngineEvent.RECOVERY_PROTOCOL,
        EngineEvent.INSIGHT_GENERATED, EngineEvent.MODELS_UPDATE,
    ]
    [protocol] = bus.history(EngineEvent.RECOVERY_PROTOCOL)
    assert isinstance(protocol, RecoveryProtocolReady)
    assert protocol.reason == "DNF due to injury with 8× weight"
    assert protocol.plan.volume_ramp() == [40.0, 60.0]

    [insights] = bus.history(EngineEvent.INSIGHT_GENERATED)
    assert isinstance(insights, InsightsGenerated)
    assert insights.weight == 8.0
    [update] = bus.history(EngineEvent.MODELS_UPDATE)
    assert update.models == DNF_MODELS
    assert update.source == 'dnf_event'


def test_attach_twice_does_not_duplicate(bus, handlers):
    handlers.attach()
    handlers.record(DailyFeedback(athlete_id="athlete-1", feedback_date=DAY))
    assert len(bus.history(EngineEvent.MICRO_ADJUSTMENT)) == 1
