"""
Fixtures partagées: collaborateurs en mémoire, profils athlète et fabriques d'activités
"""
import threading
from datetime import date, datetime, time, timedelta

import pytest
from loguru import logger

from models.activity import Activity
from models.athlete import AthleteProfile, TrainingConstraints, TerrainType
from models.context import WeatherReading
from models.feedback import DailyFeedback, RaceFeedback, DNFEvent


# Mercredi: la semaine planifiée commence le lundi 10 mars 2025
REFERENCE_DATE = date(2025, 3, 12)


class InMemoryActivityStore:
    def __init__(self, activities=None):
        self.activities = list(activities or [])
        self.calls = 0

    def get_activities(self, start, end):
        self.calls += 1
        return [a for a in self.activities if start <= a.timestamp.date() <= end]


class FailingActivityStore:
    def get_activities(self, start, end):
        raise ConnectionError("Journal d'activités injoignable")


class InMemoryCalendarStore:
    def __init__(self, races=None, events=None):
        self.races = list(races or [])
        self.events = list(events or [])

    def get_races(self):
        return list(self.races)

    def get_events(self):
        return list(self.events)


class InMemoryProfileStore:
    def __init__(self, *profiles):
        self.profiles = {p.athlete_id: p for p in profiles}

    def get_profile(self, athlete_id):
        return self.profiles.get(athlete_id)


class InMemoryFeedbackStore:
    def __init__(self):
        self.events = []

    def append(self, event):
        self.events.append(event)

    def daily_feedback(self, athlete_id, start, end):
        return [
            e for e in self.events
            if isinstance(e, DailyFeedback) and e.athlete_id == athlete_id and start <= e.feedback_date <= end
        ]

    def race_feedback(self, athlete_id):
        return [e for e in self.events if isinstance(e, RaceFeedback) and e.athlete_id == athlete_id]

    def dnf_events(self, athlete_id):
        return [e for e in self.events if isinstance(e, DNFEvent) and e.athlete_id == athlete_id]


class StaticClimateProvider:
    def __init__(self, reading):
        self.reading = reading
        self.calls = 0

    def get_weather(self, lat, lon, day):
        self.calls += 1
        return self.reading


class FailingClimateProvider:
    def get_weather(self, lat, lon, day):
        raise TimeoutError("Service météo injoignable")


class BlockingClimateProvider:
    """Ne répond qu'une fois l'événement libéré (simule un appel lent)"""

    def __init__(self):
        self.release = threading.Event()

    def get_weather(self, lat, lon, day):
        self.release.wait(5)
        return WeatherReading(temperature=30.0, humidity=40.0)


@pytest.fixture
def reference_date():
    return REFERENCE_DATE


@pytest.fixture
def make_activity():
    """Fabrique d'activités datées relativement à la date de référence"""

    def _make(days_ago=0, type='Run', minutes=60.0, distance_km=None, heart_rate=None,
              elevation=None, reference=REFERENCE_DATE, **extra):
        day = reference - timedelta(days=days_ago)
        return Activity(
            type=type,
            duration_minutes=minutes,
            distance_km=distance_km,
            heart_rate_avg=heart_rate,
            elevation_gain_m=elevation,
            timestamp=datetime.combine(day, time(7, 30)),
            **extra
        )

    return _make


@pytest.fixture
def steady_activities(make_activity):
    """Quatre semaines régulières: footing de 50 min un jour sur deux"""
    return [make_activity(days_ago=d, minutes=50, distance_km=9.0) for d in range(0, 56, 2)]


@pytest.fixture
def athlete():
    return AthleteProfile(
        athlete_id="athlete-1",
        name="Camille",
        weekly_km_base=50.0,
        constraints=TrainingConstraints(days_per_week=5, rest_days=[1, 5], long_run_day=6)
    )


@pytest.fixture
def trail_athlete():
    return AthleteProfile(
        athlete_id="athlete-2",
        weekly_km_base=70.0,
        preferred_terrain=TerrainType.TRAIL,
        constraints=TrainingConstraints(days_per_week=4, long_run_day=7)
    )


@pytest.fixture
def feedback_store():
    return InMemoryFeedbackStore()


@pytest.fixture
def warm_reading():
    return WeatherReading(temperature=29.0, humidity=60.0, heat_index=31.0, wind_speed=3.0, conditions="Clear")


@pytest.fixture
def log_messages():
    """Messages loguru de niveau WARNING et plus émis pendant le test"""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)
