"""Conversion des courses/événements du calendrier en charge km-équivalent."""

from datetime import date, timedelta
from typing import Iterable, Optional, Protocol, Union

from config.settings import EVENT_LOAD
from models.metrics import EventLoad
from models.race import Race, CalendarEvent, RacePriority


class EventLoadConverter(Protocol):
    """Convertit une course/un événement en km-équivalent"""

    def __call__(self, entry: Union[Race, CalendarEvent]) -> float: ...


class KmEquivalentConverter:
    """
    Conversion par défaut:

    base = distance déclarée, sinon temps prévu / allure (6 min/km)
    + dénivelé / 100 m
    x facteur de priorité (A=1.5, B=1.2, C=1.0)
    """

    def __init__(
        self,
        pace_min_per_km: float = EVENT_LOAD['pace_min_per_km'],
        meters_per_km_equivalent: float = EVENT_LOAD['meters_per_km_equivalent'],
        priority_factors: Optional[dict] = None,
        default_priority: str = EVENT_LOAD['default_priority']
    ):
        self.pace_min_per_km = pace_min_per_km
        self.meters_per_km_equivalent = meters_per_km_equivalent
        self.priority_factors = priority_factors or dict(EVENT_LOAD['priority_factors'])
        self.default_priority = default_priority

    def base_km(self, entry: Union[Race, CalendarEvent]) -> float:
        if entry.distance_km:
            return entry.distance_km
        minutes = entry.expected_minutes
        if minutes:
            return minutes / self.pace_min_per_km
        return 0.0

    def priority_factor(self, priority: Optional[RacePriority]) -> float:
        key = priority.value if priority else self.default_priority
        return self.priority_factors.get(key, self.priority_factors[self.default_priority])

    def __call__(self, entry: Union[Race, CalendarEvent]) -> float:
        km = self.base_km(entry)
        km += (entry.elevation_gain_m or 0) / self.meters_per_km_equivalent
        return round(km * self.priority_factor(entry.priority), 2)


def calculate_event_load(
    entries: Iterable[Union[Race, CalendarEvent]],
    reference_date: date,
    converter: Optional[EventLoadConverter] = None,
    acute_days: int = 7,
    chronic_days: int = 28
) -> EventLoad:
    """
    Calcule la charge événementielle sur les fenêtres aiguë et chronique.

    Même fenêtres que l'ACWR, mais en km-équivalent: cette charge reste un
    contexte auxiliaire et n'entre jamais dans le ratio.

    Args:
        entries: Courses et événements du calendrier
        reference_date: Dernier jour inclus
        converter: Conversion km-équivalent (défaut KmEquivalentConverter)

    Returns:
        EventLoad
    """
    converter = converter or KmEquivalentConverter()
    acute_start = reference_date - timedelta(days=acute_days - 1)
    chronic_start = reference_date - timedelta(days=chronic_days - 1)

    acute = 0.0
    chronic = 0.0
    count = 0
    for entry in entries:
        if not chronic_start <= entry.event_date <= reference_date:
            continue
        km = converter(entry)
        count += 1
        chronic += km
        if entry.event_date >= acute_start:
            acute += km

    return EventLoad(
        acute_km=round(acute, 2),
        chronic_km=round(chronic / (chronic_days / acute_days), 2),
        event_count=count
    )
