"""
Tests des briques transverses: cache de session, journal des retours,
conversion en workouts, motivation, météo et logger
"""
import sys
import threading
from datetime import date, timedelta

import pytest
from loguru import logger
from pyowm.commons.exceptions import PyOWMError

from core.motivation import MotivationDetector, OnboardingResponses, fallback_profile
from models.context import Archetype, Provenance
from models.errors import WeatherUnavailableError, WorkoutParityError
from models.feedback import DailyFeedback, DNFCause, DNFEvent, LimiterType, RaceFeedback
from models.training_plan import DailyPlan, Session, SessionType, TrainingPhase, WeeklyPlan, create_week_dates
from services import weather_service
from services.weather_service import WeatherService
from utils.feedback_log import JsonlFeedbackStore
from utils.logger import setup_logger
from utils.ttl_cache import CacheClosedError, TTLCache
from utils.workout_conversion import convert_plan_to_workouts, session_key


MONDAY = date(2025, 3, 10)


# ---------------------------------------------------------------------------
# Cache de session
# ---------------------------------------------------------------------------

def test_concurrent_calls_share_one_load():
    cache = TTLCache(ttl_seconds=60)
    started = threading.Event()
    release = threading.Event()
    calls = []
    results = []

    def loader():
        calls.append(1)
        started.set()
        release.wait(5)
        return "activités"

    def worker():
        results.append(cache.get_or_load("athlete-1", loader, timeout=5))

    threads = [threading.Thread(target=worker) for _ in range(4)]
    threads[0].start()
    started.wait(5)
    for thread in threads[1:]:
        thread.start()
    release.set()
    for thread in threads:
        thread.join()

    assert calls == [1]
    assert cache.loads == 1
    assert results == ["activités"] * 4


def test_entries_expire_with_clock():
    now = [0.0]
    cache = TTLCache(ttl_seconds=10, clock=lambda: now[0])

    cache.get_or_load("k", lambda: 1)
    now[0] = 5.0
    assert cache.get_or_load("k", lambda: 2) == 1
    now[0] = 11.0
    assert cache.get_or_load("k", lambda: 3) == 3
    assert cache.loads == 2

    now[0] = 30.0
    assert cache.purge_expired() == 1
    assert len(cache) == 0


def test_expired_entries_are_evicted_on_insert():
    now = [0.0]
    cache = TTLCache(ttl_seconds=10, clock=lambda: now[0])

    for day in range(30):
        now[0] = day * 20.0
        cache.get_or_load(('activities', day), lambda: day)

    assert len(cache) == 1
    assert cache.loads == 30


def test_failures_are_not_cached():
    cache = TTLCache(ttl_seconds=60)

    def broken():
        raise ConnectionError("injoignable")

    with pytest.raises(ConnectionError):
        cache.get_or_load("k", broken)
    assert cache.get_or_load("k", lambda: "ok") == "ok"
    assert cache.loads == 1


def test_closed_cache_refuses_calls():
    with TTLCache(ttl_seconds=60) as cache:
        cache.get_or_load("k", lambda: 1)

    assert cache.closed
    assert len(cache) == 0
    with pytest.raises(CacheClosedError):
        cache.get_or_load("k", lambda: 1)


# ---------------------------------------------------------------------------
# Journal JSONL
# ---------------------------------------------------------------------------

def test_feedback_log_round_trips_all_kinds(tmp_path):
    store = JsonlFeedbackStore(tmp_path / "data" / "feedback.jsonl")
    daily = DailyFeedback(athlete_id="a", feedback_date=MONDAY, fatigue=6)
    race = RaceFeedback(athlete_id="a", event_date=MONDAY, biggest_limiter=LimiterType.HEAT)
    dnf = DNFEvent(athlete_id="a", event_date=MONDAY, dnf_cause=DNFCause.STOMACH, km_stopped=30.0)

    for event in (daily, race, dnf):
        store.append(event)

    assert store.load_all() == [daily, race, dnf]
    assert store.race_feedback("a") == [race]
    assert store.dnf_events("a") == [dnf]
    assert store.dnf_events("b") == []


def test_feedback_log_skips_unreadable_lines(tmp_path, log_messages):
    path = tmp_path / "feedback.jsonl"
    store = JsonlFeedbackStore(path)
    store.append(DailyFeedback(athlete_id="a", feedback_date=MONDAY, fatigue=4))
    with open(path, 'a', encoding='utf-8') as f:
        f.write("{pas du json\n\n")
    store.append(DailyFeedback(athlete_id="a", feedback_date=MONDAY + timedelta(days=3), fatigue=7))

    assert len(store.load_all()) == 2
    assert any("Ligne 2" in m for m in log_messages)


def test_daily_feedback_filters_on_dates(tmp_path):
    store = JsonlFeedbackStore(tmp_path / "feedback.jsonl")
    for offset in range(5):
        store.append(DailyFeedback(athlete_id="a", feedback_date=MONDAY + timedelta(days=offset)))

    window = store.daily_feedback("a", MONDAY + timedelta(days=1), MONDAY + timedelta(days=3))
    assert [f.feedback_date.day for f in window] == [11, 12, 13]


def test_missing_log_file_is_empty(tmp_path):
    assert JsonlFeedbackStore(tmp_path / "absent.jsonl").load_all() == []


# ---------------------------------------------------------------------------
# Conversion en workouts
# ---------------------------------------------------------------------------

def _plan_with_sessions():
    easy = Session(type=SessionType.EASY, title="Footing 8 km", distance_km=8.0)
    strength = Session(type=SessionType.STRENGTH, title="Renforcement", duration_min=30.0)
    rest = Session(type=SessionType.REST, title="Repos")
    sessions = {2: [easy, strength], 4: [rest], 6: [easy]}
    days = [
        DailyPlan(date=day, day_of_week=index + 1, sessions=sessions.get(index + 1, []))
        for index, day in enumerate(create_week_dates(MONDAY))
    ]
    return WeeklyPlan(week_start=MONDAY, phase=TrainingPhase.BASE, days=days)


def test_conversion_drops_rest_and_keeps_one_workout_per_session():
    workouts = convert_plan_to_workouts(_plan_with_sessions())

    assert [w.session_key for w in workouts] == [
        session_key(MONDAY + timedelta(days=1), 0),
        session_key(MONDAY + timedelta(days=1), 1),
        session_key(MONDAY + timedelta(days=5), 0),
    ]
    assert workouts[1].type == SessionType.STRENGTH
    assert workouts[1].duration_min == 30.0
    assert all(w.type != SessionType.REST for w in workouts)


def test_conversion_rejects_duplicated_sessions(monkeypatch):
    from utils import workout_conversion

    real_key = workout_conversion.session_key
    monkeypatch.setattr(workout_conversion, "session_key", lambda day, index: real_key(day, 0))

    with pytest.raises(WorkoutParityError):
        convert_plan_to_workouts(_plan_with_sessions())


# ---------------------------------------------------------------------------
# Motivation
# ---------------------------------------------------------------------------

def test_no_signal_gives_fallback_profile(reference_date):
    profile = MotivationDetector().detect([], reference_date)

    assert profile == fallback_profile()
    assert profile.provenance == Provenance.DEFAULT
    assert profile.confidence == 0.0


def test_onboarding_keywords_pick_adventurer(reference_date):
    responses = OnboardingResponses(why_running="trail, nature and adventure")

    profile = MotivationDetector().detect([], reference_date, onboarding=responses)

    assert profile.dominant == Archetype.ADVENTURER
    assert profile.provenance == Provenance.REAL
    assert sum(profile.scores.values()) == pytest.approx(1.0)
    assert profile.confidence == 1.0


def test_regular_training_points_to_health(steady_activities, reference_date):
    profile = MotivationDetector().detect(steady_activities, reference_date)

    assert profile.dominant == Archetype.HEALTH
    assert profile.scores[Archetype.PERFORMER] == pytest.approx(0.4)
    assert profile.confidence == pytest.approx(0.4)


# ---------------------------------------------------------------------------
# Service météo
# ---------------------------------------------------------------------------

class FakeWeather:
    humidity = 55
    status = "Clouds"

    def temperature(self, unit):
        assert unit == 'celsius'
        return {'temp': 24.5, 'feels_like': 25.1}

    def wind(self):
        return {'speed': 4.2}


class FakeObservation:
    weather = FakeWeather()


class FakeForecast:
    def __init__(self):
        self.targets = []

    def get_weather_at(self, target):
        self.targets.append(target)
        return FakeWeather()


class FakeManager:
    def __init__(self, error=None):
        self.error = error
        self.forecast = FakeForecast()

    def weather_at_coords(self, lat, lon):
        if self.error:
            raise self.error
        return FakeObservation()

    def forecast_at_coords(self, lat, lon, interval):
        return self.forecast


class FakeOWM:
    def __init__(self, manager):
        self.manager = manager

    def weather_manager(self):
        return self.manager


def test_weather_disabled_without_api_key(monkeypatch, log_messages):
    monkeypatch.setattr(weather_service, "OPENWEATHER_API_KEY", "")

    service = WeatherService()

    assert not service.enabled
    assert any("OPENWEATHER_API_KEY" in m for m in log_messages)
    with pytest.raises(WeatherUnavailableError):
        service.get_weather(45.76, 4.84, date.today())


def test_current_weather_reading():
    service = WeatherService(owm=FakeOWM(FakeManager()))

    reading = service.get_weather(45.76, 4.84, date.today())

    assert reading.temperature == 24.5
    assert reading.heat_index == 25.1
    assert reading.humidity == 55
    assert reading.wind_speed == 4.2
    assert reading.conditions == "Clouds"


def test_future_day_uses_noon_forecast():
    manager = FakeManager()
    service = WeatherService(owm=FakeOWM(manager))
    tomorrow = date.today() + timedelta(days=1)

    service.get_weather(45.76, 4.84, tomorrow)

    [target] = manager.forecast.targets
    assert target.date() == tomorrow
    assert target.hour == 12


def test_pyowm_errors_are_mapped():
    service = WeatherService(owm=FakeOWM(FakeManager(error=PyOWMError("quota dépassé"))))

    with pytest.raises(WeatherUnavailableError, match="quota"):
        service.get_weather(45.76, 4.84, date.today())


# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------

def test_setup_logger_writes_to_file(tmp_path):
    log_file = tmp_path / "logs" / "engine.log"
    try:
        setup_logger(level="INFO", log_file=str(log_file))
        logger.info("Plan généré")
        logger.debug("détail masqué")
    finally:
        logger.remove()
        logger.add(sys.stderr)

    content = log_file.read_text(encoding='utf-8')
    assert "Plan généré" in content
    assert "détail masqué" not in content
