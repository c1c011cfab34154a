"""
Agrégation du contexte de décision

Fusionne charge (ACWR), climat, motivation, calendrier de courses,
historique d'entraînement et localisation en un instantané immuable.
Les sources externes sont interrogées en parallèle avec un délai
borné; toute panne est remplacée par une valeur par défaut marquée
`Provenance.DEFAULT`.
"""
import time
from concurrent.futures import ThreadPoolExecutor, Future
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel, ConfigDict
from loguru import logger

from config.settings import (
    EXTERNAL_CALL_TIMEOUT_SECONDS, CONTEXT_REFRESH_HOURS, HEAT_STRESS_BANDS, DEFAULT_WEATHER,
    EXPECTED_SESSIONS_PER_WEEK, HARD_SESSION_THRESHOLDS, DEFAULT_FATIGUE, DEFAULT_DAYS_SINCE_HARD,
    ACWR_CHRONIC_DAYS, MOTIVATION_HISTORY_WEEKS, PHASE_THRESHOLDS
)
from core.activity_classifier import ActivityClassifier
from core.acwr_zones import get_zone, get_risk_level, get_trend, is_sustainable_pattern, get_zone_advice
from core.load_analyzer import compute_training_load
from core.motivation import MotivationDetector, OnboardingResponses, fallback_profile
from models.activity import Activity
from models.athlete import AthleteProfile
from models.context import (
    AdaptiveContext, AcwrContext, ClimateContext, HeatStressLevel, LocationContext,
    Provenance, RaceCalendarContext, SignalTimestamps, TrainingHistoryContext, WeatherReading
)
from models.feedback import DailyFeedback
from models.metrics import LoadRecommendation
from models.race import Race, CalendarEvent, RaceEntry, RacePriority, RaceType
from models.training_plan import WeeklyPlan
from services.collaborators import ActivityStore, CalendarStore, ClimateProvider, FeedbackStore
from utils.ttl_cache import TTLCache


T = TypeVar('T')

HISTORY_DAYS = 28
MISSED_WINDOW_DAYS = 14
MISSED_BASELINE = 10
RECENT_ELEVATION_DAYS = 7
RATIO_HISTORY_WEEKS = 3


class AthleteLocation(BaseModel):
    """Position courante de l'athlète (fournie par l'appelant)"""
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    elevation_m: float = 0.0
    is_travel: bool = False


# ---------------------------------------------------------------------------
# Climat
# ---------------------------------------------------------------------------

def classify_heat_stress(temperature: float, heat_index: Optional[float] = None) -> HeatStressLevel:
    """
    Niveau de stress thermique sur la température effective

    Le froid n'est pas un stress thermique: tout ce qui est sous 25 °C est vert.
    """
    effective = heat_index if heat_index is not None else temperature
    for upper, level in HEAT_STRESS_BANDS:
        if effective < upper:
            return HeatStressLevel(level)
    return HeatStressLevel.BLACK


def compute_wbgt(temperature: float, humidity: float) -> float:
    """Approximation du WBGT en extérieur, arrondie au dixième"""
    return round(temperature * (0.567 + 0.393 * humidity / 100) + 3.94, 1)


def build_climate(reading: WeatherReading) -> ClimateContext:
    return ClimateContext(
        temperature=reading.temperature,
        humidity=reading.humidity,
        heat_index=reading.heat_index,
        wind_speed=reading.wind_speed,
        conditions=reading.conditions,
        level=classify_heat_stress(reading.temperature, reading.heat_index),
        wbgt=compute_wbgt(reading.temperature, reading.humidity)
    )


def default_climate() -> ClimateContext:
    """Climat neutre (20 °C, 50 %, ciel clair)"""
    temperature = DEFAULT_WEATHER['temperature']
    humidity = DEFAULT_WEATHER['humidity']
    return ClimateContext(
        temperature=temperature,
        humidity=humidity,
        heat_index=DEFAULT_WEATHER['feels_like'],
        wind_speed=DEFAULT_WEATHER['wind_speed'],
        conditions=DEFAULT_WEATHER['conditions'],
        level=classify_heat_stress(temperature),
        wbgt=compute_wbgt(temperature, humidity),
        provenance=Provenance.DEFAULT
    )


# ---------------------------------------------------------------------------
# ACWR
# ---------------------------------------------------------------------------

def build_acwr_context(
    activities: Sequence[Activity],
    reference_date: date,
    events: Iterable[Union[Race, CalendarEvent]] = (),
    classifier: Optional[ActivityClassifier] = None,
    prior_ratios: Optional[Sequence[float]] = None
) -> AcwrContext:
    """
    Signal ACWR: zone, niveau de risque, tendance et soutenabilité

    Sans historique fourni, les ratios des 3 semaines précédentes sont
    recalculés sur les activités disponibles.

    Args:
        activities: Activités couvrant au moins les 28 jours précédant la référence
        reference_date: Date de référence
        events: Courses/événements (charge auxiliaire)
        classifier: Classifieur d'activités
        prior_ratios: Ratios hebdomadaires antérieurs, du plus ancien au plus récent
    """
    classifier = classifier or ActivityClassifier()
    load = compute_training_load(activities, reference_date, events, classifier)

    if prior_ratios is None:
        prior_ratios = [
            compute_training_load(activities, reference_date - timedelta(weeks=k), (), classifier).ratio
            for k in range(RATIO_HISTORY_WEEKS, 0, -1)
        ]
    ratios = list(prior_ratios) + [load.ratio]

    zone = get_zone(load.ratio)
    trend = get_trend(ratios)
    sustainable, reason = is_sustainable_pattern(ratios)
    if not sustainable:
        logger.warning(f"Charge non soutenable: {reason}")

    return AcwrContext(
        ratio=round(load.ratio, 2),
        zone=zone,
        risk_level=get_risk_level(zone),
        trend=trend,
        recommendation=load.recommendation,
        acute_load=load.acute_load,
        chronic_load=load.chronic_load,
        event_load=load.event_load,
        sustainable=sustainable,
        advice=get_zone_advice(zone, trend),
        provenance=Provenance.REAL if load.included_count else Provenance.DEFAULT
    )


def default_acwr() -> AcwrContext:
    zone = get_zone(1.0)
    return AcwrContext(
        ratio=1.0,
        zone=zone,
        risk_level=get_risk_level(zone),
        recommendation=LoadRecommendation.MAINTAIN,
        advice=get_zone_advice(zone, get_trend([])),
        provenance=Provenance.DEFAULT
    )


# ---------------------------------------------------------------------------
# Calendrier de courses
# ---------------------------------------------------------------------------

def infer_race_type(distance_km: float, elevation_gain_m: float = 0.0) -> RaceType:
    """Type de course d'après la distance (et le dénivelé pour route)"""
    if elevation_gain_m < 500:
        if 40 <= distance_km <= 45:
            return RaceType.MARATHON
        if 19 <= distance_km <= 23:
            return RaceType.HALF_MARATHON
    if 155 <= distance_km <= 175:
        return RaceType.HUNDRED_MILES
    if 95 <= distance_km <= 110:
        return RaceType.HUNDRED_K
    if 75 <= distance_km <= 90:
        return RaceType.FIFTY_MILES
    if 45 <= distance_km <= 60:
        return RaceType.FIFTY_K
    return RaceType.CUSTOM


def infer_terrain(elevation_gain_m: float) -> str:
    if elevation_gain_m > 1000:
        return "mountain"
    if elevation_gain_m > 300:
        return "trail"
    return "road"


def to_race_entry(item: Union[Race, CalendarEvent]) -> RaceEntry:
    """Normalise une course ou un événement de type course"""
    distance = item.distance_km or 0.0
    elevation = item.elevation_gain_m or 0.0
    return RaceEntry(
        name=item.name,
        event_date=item.event_date,
        distance_km=distance,
        elevation_gain_m=elevation,
        priority=item.priority,
        expected_minutes=item.expected_minutes,
        race_type=infer_race_type(distance, elevation),
        terrain=infer_terrain(elevation),
        source="race" if isinstance(item, Race) else "event"
    )


def build_race_calendar(
    races: Iterable[Race],
    events: Iterable[CalendarEvent],
    today: date,
    lookback_days: int = PHASE_THRESHOLDS['recovery_window']
) -> RaceCalendarContext:
    """
    Fusionne courses et événements de type course

    Les courses terminées depuis au plus 7 jours sont conservées pour
    planifier la récupération. Course principale: première de priorité A,
    sinon la prochaine à venir, sinon la plus récente.

    Args:
        races: Courses inscrites
        events: Événements calendrier (seuls les 'race' sont retenus)
        today: Date de référence
        lookback_days: Fenêtre de courses passées conservées
    """
    cutoff = today - timedelta(days=lookback_days)
    entries = [to_race_entry(r) for r in races] + [to_race_entry(e) for e in events if e.is_race()]
    entries = sorted((e for e in entries if e.event_date >= cutoff), key=lambda e: (e.event_date, e.priority.value))

    upcoming = [e for e in entries if e.event_date >= today]
    main_race = next((e for e in entries if e.priority == RacePriority.A), None)
    if main_race is None:
        main_race = upcoming[0] if upcoming else (entries[-1] if entries else None)
    next_race = upcoming[0] if upcoming else None

    return RaceCalendarContext(
        races=entries,
        main_race=main_race,
        next_race=next_race,
        days_to_main_race=(main_race.event_date - today).days if main_race else None,
        days_to_next_race=(next_race.event_date - today).days if next_race else None
    )


def default_race_calendar() -> RaceCalendarContext:
    return RaceCalendarContext(provenance=Provenance.DEFAULT)


# ---------------------------------------------------------------------------
# Historique et localisation
# ---------------------------------------------------------------------------

def is_hard_session(activity: Activity) -> bool:
    """Séance dure: FC > 160, ou > 15 km, ou allure < 5:30/km"""
    if activity.heart_rate_avg and activity.heart_rate_avg > HARD_SESSION_THRESHOLDS['heart_rate']:
        return True
    if activity.distance_km and activity.distance_km > HARD_SESSION_THRESHOLDS['distance_km']:
        return True
    pace = activity.pace_min_per_km
    return pace is not None and pace < HARD_SESSION_THRESHOLDS['pace_min_per_km']


def build_training_history(
    activities: Sequence[Activity],
    feedback: Sequence[DailyFeedback],
    reference_date: date
) -> TrainingHistoryContext:
    """
    Complétion sur 4 semaines, fatigue moyenne, séances manquées sur 2
    semaines et jours depuis la dernière séance dure

    Sans activité ni retour: métriques neutres, provenance par défaut.
    """
    start = reference_date - timedelta(days=HISTORY_DAYS - 1)
    window = [a for a in activities if start <= a.timestamp.date() <= reference_date]
    fatigue_values = [f.fatigue for f in feedback if f.fatigue is not None]

    if not window and not fatigue_values:
        return default_training_history()

    recent_start = reference_date - timedelta(days=MISSED_WINDOW_DAYS - 1)
    recent_count = sum(1 for a in window if a.timestamp.date() >= recent_start)
    expected = EXPECTED_SESSIONS_PER_WEEK * HISTORY_DAYS // 7

    hard_days = [a.timestamp.date() for a in window if is_hard_session(a)]
    days_since_hard = (reference_date - max(hard_days)).days if hard_days else DEFAULT_DAYS_SINCE_HARD

    return TrainingHistoryContext(
        completion_rate=min(1.0, len(window) / expected),
        average_fatigue=round(sum(fatigue_values) / len(fatigue_values), 2) if fatigue_values else DEFAULT_FATIGUE,
        missed_workouts=max(0, MISSED_BASELINE - recent_count),
        days_since_hard_workout=days_since_hard,
        sessions_last_28_days=len(window)
    )


def default_training_history() -> TrainingHistoryContext:
    return TrainingHistoryContext(
        average_fatigue=DEFAULT_FATIGUE,
        days_since_hard_workout=DEFAULT_DAYS_SINCE_HARD,
        provenance=Provenance.DEFAULT
    )


def build_location(
    athlete: AthleteProfile,
    activities: Sequence[Activity],
    reference_date: date,
    location: Optional[AthleteLocation] = None
) -> LocationContext:
    """Altitude courante, dénivelé des 7 derniers jours et terrain habituel"""
    start = reference_date - timedelta(days=RECENT_ELEVATION_DAYS - 1)
    recent_gain = sum(
        a.elevation_gain_m or 0 for a in activities if start <= a.timestamp.date() <= reference_date
    )
    return LocationContext(
        current_elevation_m=location.elevation_m if location else 0.0,
        recent_elevation_gain_m=recent_gain,
        terrain_type=athlete.preferred_terrain.value,
        is_travel=location.is_travel if location else False,
        provenance=Provenance.REAL if location else Provenance.DEFAULT
    )


def should_refresh(
    context: AdaptiveContext,
    now: Optional[datetime] = None,
    updates: Optional[SignalTimestamps] = None
) -> bool:
    """
    Le contexte doit être reconstruit s'il a plus d'une heure ou si une
    source a été mise à jour depuis sa construction
    """
    now = now or datetime.now()
    if now - context.built_at > timedelta(hours=CONTEXT_REFRESH_HOURS):
        return True
    if updates is None:
        return False

    for field in ('acwr', 'weather', 'races'):
        updated = getattr(updates, field)
        known = getattr(context.refreshed_at, field) or context.built_at
        if updated is not None and updated > known:
            return True
    return False


# ---------------------------------------------------------------------------
# Agrégateur
# ---------------------------------------------------------------------------

class ContextAggregator:
    """
    Construit l'AdaptiveContext à partir des collaborateurs injectés

    Un TTLCache regroupe les requêtes identiques concurrentes; un pool de
    threads exécute les appels externes avec un délai borné.
    """

    def __init__(
        self,
        activity_store: ActivityStore,
        calendar_store: Optional[CalendarStore] = None,
        climate_provider: Optional[ClimateProvider] = None,
        feedback_store: Optional[FeedbackStore] = None,
        classifier: Optional[ActivityClassifier] = None,
        motivation_detector: Optional[MotivationDetector] = None,
        cache: Optional[TTLCache] = None,
        timeout: float = EXTERNAL_CALL_TIMEOUT_SECONDS,
        max_workers: int = 4
    ):
        self.activity_store = activity_store
        self.calendar_store = calendar_store
        self.climate_provider = climate_provider
        self.feedback_store = feedback_store
        self.classifier = classifier or ActivityClassifier()
        self.motivation_detector = motivation_detector or MotivationDetector()
        self._owns_cache = cache is None
        self.cache = cache if cache is not None else TTLCache()
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="context")

    # -- chargements (exécutés dans le pool) --

    def _load_weather(self, location: Optional[AthleteLocation], day: date) -> WeatherReading:
        if self.climate_provider is None or location is None:
            raise LookupError("Aucune source météo ou position")
        key = ('weather', round(location.latitude, 3), round(location.longitude, 3), day)
        return self.cache.get_or_load(
            key, lambda: self.climate_provider.get_weather(location.latitude, location.longitude, day),
            self.timeout
        )

    def _load_calendar(self) -> tuple[list[Race], list[CalendarEvent]]:
        if self.calendar_store is None:
            return [], []
        return self.cache.get_or_load(
            ('calendar',),
            lambda: (list(self.calendar_store.get_races()), list(self.calendar_store.get_events())),
            self.timeout
        )

    def _load_activities(self, start: date, end: date) -> list[Activity]:
        return self.cache.get_or_load(
            ('activities', start, end), lambda: list(self.activity_store.get_activities(start, end)), self.timeout
        )

    def _load_feedback(self, athlete_id: str, start: date, end: date) -> list[DailyFeedback]:
        if self.feedback_store is None:
            return []
        return self.cache.get_or_load(
            ('feedback', athlete_id, start, end),
            lambda: list(self.feedback_store.daily_feedback(athlete_id, start, end)),
            self.timeout
        )

    def _resolve(self, name: str, future: Future, fallback: Callable[[], T], deadline: float) -> tuple[T, bool]:
        """
        Attend un chargement jusqu'à l'échéance commune; toute erreur ou
        dépassement donne la valeur par défaut

        Returns:
            (valeur, True si la valeur est réelle)
        """
        try:
            return future.result(timeout=max(0.0, deadline - time.monotonic())), True
        except Exception as exc:
            future.cancel()
            logger.warning(f"Signal {name} indisponible ({type(exc).__name__}: {exc}), valeur par défaut")
            return fallback(), False

    def build(
        self,
        athlete: AthleteProfile,
        reference_date: Optional[date] = None,
        plan: Optional[WeeklyPlan] = None,
        location: Optional[AthleteLocation] = None,
        onboarding: Optional[OnboardingResponses] = None,
        prior_ratios: Optional[Sequence[float]] = None,
        now: Optional[datetime] = None
    ) -> AdaptiveContext:
        """
        Construit un instantané complet

        Args:
            athlete: Profil athlète
            reference_date: Date de référence (défaut: aujourd'hui)
            plan: Plan de la semaine en cours, s'il existe
            location: Position courante (météo, altitude)
            onboarding: Réponses d'accueil (motivation)
            prior_ratios: Historique ACWR connu (sinon recalculé)
            now: Horodatage de construction

        Returns:
            AdaptiveContext gelé; chaque signal porte sa provenance
        """
        reference_date = reference_date or date.today()
        now = now or datetime.now()
        activity_days = max(ACWR_CHRONIC_DAYS + 7 * RATIO_HISTORY_WEEKS, MOTIVATION_HISTORY_WEEKS * 7)
        activity_start = reference_date - timedelta(days=activity_days - 1)
        feedback_start = reference_date - timedelta(days=HISTORY_DAYS - 1)

        futures = {
            'climate': self._executor.submit(self._load_weather, location, reference_date),
            'calendar': self._executor.submit(self._load_calendar),
            'activities': self._executor.submit(self._load_activities, activity_start, reference_date),
            'feedback': self._executor.submit(self._load_feedback, athlete.athlete_id, feedback_start, reference_date),
        }

        deadline = time.monotonic() + self.timeout
        reading, weather_ok = self._resolve('climate', futures['climate'], lambda: None, deadline)
        (races, events), calendar_ok = self._resolve('calendar', futures['calendar'], lambda: ([], []), deadline)
        activities, activities_ok = self._resolve('activities', futures['activities'], list, deadline)
        feedback, _ = self._resolve('feedback', futures['feedback'], list, deadline)

        climate = build_climate(reading) if weather_ok else default_climate()
        race_calendar = build_race_calendar(races, events, reference_date) if calendar_ok else default_race_calendar()

        if activities_ok:
            acwr = build_acwr_context(activities, reference_date, list(races) + list(events),
                                      self.classifier, prior_ratios)
            motivation = self.motivation_detector.detect(activities, reference_date, onboarding)
        else:
            acwr = default_acwr()
            motivation = self.motivation_detector.detect([], reference_date, onboarding) if onboarding \
                else fallback_profile()

        history = build_training_history(activities, feedback, reference_date)
        location_context = build_location(athlete, activities, reference_date, location)

        context = AdaptiveContext(
            athlete=athlete,
            reference_date=reference_date,
            plan=plan,
            acwr=acwr,
            climate=climate,
            motivation=motivation,
            races=race_calendar,
            history=history,
            location=location_context,
            built_at=now,
            refreshed_at=SignalTimestamps(
                acwr=now if activities_ok else None,
                weather=now if weather_ok else None,
                races=now if calendar_ok else None
            )
        )
        degraded = context.degraded_signals()
        if degraded:
            logger.info(f"Contexte du {reference_date} construit avec valeurs par défaut: {degraded}")
        return context

    def close(self):
        """Libère le pool; un cache injecté reste sous la responsabilité de l'appelant"""
        if self._owns_cache:
            self.cache.close()
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
