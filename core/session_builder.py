"""
Briques communes de construction d'une semaine: choix des jours, répartition
du volume et création des séances
"""
from datetime import date
from typing import Optional

from models.athlete import AthleteProfile
from models.training_plan import Session, SessionType, DailyPlan, WeeklyPlan, TrainingPhase, empty_week
from core.plan_validator import validate_weekly_plan


STRENGTH_DURATION_MIN = 45
QUALITY_TYPES = {SessionType.TEMPO, SessionType.INTERVALS, SessionType.HILLS}
EASY_TYPES = {SessionType.EASY, SessionType.STRIDES, SessionType.RECOVERY}

SESSION_ZONES = {
    SessionType.EASY: ['Z2'],
    SessionType.LONG_RUN: ['Z2'],
    SessionType.RECOVERY: ['Z1'],
    SessionType.STRIDES: ['Z2', 'Z5'],
    SessionType.TEMPO: ['Z3'],
    SessionType.INTERVALS: ['Z4', 'Z5'],
    SessionType.HILLS: ['Z4'],
    SessionType.RACE: ['Z4', 'Z5'],
    SessionType.STRENGTH: [],
    SessionType.REST: [],
}

# Poids de dénivelé par km selon le type de séance
VERTICAL_WEIGHTS = {
    SessionType.LONG_RUN: 20,
    SessionType.HILLS: 50,
}
DEFAULT_VERTICAL_WEIGHT = 15

SESSION_TITLES = {
    SessionType.EASY: "Footing",
    SessionType.LONG_RUN: "Sortie longue",
    SessionType.RECOVERY: "Récupération active",
    SessionType.STRIDES: "Footing + lignes droites",
    SessionType.TEMPO: "Tempo",
    SessionType.INTERVALS: "Fractionné VO2max",
    SessionType.HILLS: "Côtes",
}


def circular_distance(a: int, b: int) -> int:
    """Distance en jours entre deux jours de la semaine (1-7), en boucle"""
    diff = abs(a - b)
    return min(diff, 7 - diff)


def nearest_available_day(preferred: int, available: list[int]) -> Optional[int]:
    """Jour disponible le plus proche du jour préféré (égalité: le plus tardif)"""
    if not available:
        return None
    return min(available, key=lambda d: (circular_distance(d, preferred), -d))


def choose_training_days(available: list[int], count: int, anchor: int) -> list[int]:
    """
    Choisit count jours parmi les jours disponibles

    Le jour d'ancrage (sortie longue) est pris en premier, puis les jours
    les plus éloignés des jours déjà choisis pour étaler la charge.

    Returns:
        Jours choisis, l'ancrage en premier
    """
    count = min(count, len(available))
    if count <= 0:
        return []

    first = anchor if anchor in available else nearest_available_day(anchor, available)
    chosen = [first]
    while len(chosen) < count:
        candidates = [d for d in available if d not in chosen]
        best = max(candidates, key=lambda d: (min(circular_distance(d, c) for c in chosen), -d))
        chosen.append(best)
    return chosen


def assign_roles(days: list[int], roles: list[SessionType]) -> dict[int, SessionType]:
    """
    Associe un rôle à chaque jour choisi

    Le premier rôle va au premier jour (ancrage). Les rôles suivants sont
    placés du jour le plus éloigné de l'ancrage au plus proche, pour que
    les séances de qualité ne touchent pas la sortie longue.
    """
    if not days:
        return {}
    anchor = days[0]
    others = sorted(days[1:], key=lambda d: (-circular_distance(d, anchor), d))
    assignment = {anchor: roles[0]}
    for day, role in zip(others, roles[1:]):
        assignment[day] = role
    return assignment


def allocate_distances(
    roles: list[SessionType],
    weekly_km: float,
    long_share: float = 0.30,
    long_cap: Optional[float] = 25.0,
    quality_share: float = 0.15
) -> list[float]:
    """
    Répartit le volume hebdomadaire entre les rôles

    Sortie longue = min(part, plafond), qualité = part fixe chacune, le
    reste est partagé entre les footings. Sans footing, les parts sont
    remises à l'échelle pour que la somme égale le volume cible.
    """
    if not roles or weekly_km <= 0:
        return [0.0 for _ in roles]

    raw = []
    for role in roles:
        if role == SessionType.LONG_RUN:
            km = weekly_km * long_share
            raw.append(min(km, long_cap) if long_cap else km)
        elif role in QUALITY_TYPES:
            raw.append(weekly_km * quality_share)
        else:
            raw.append(None)

    fixed = sum(km for km in raw if km is not None)
    easy_count = sum(1 for km in raw if km is None)
    remaining = weekly_km - fixed

    if easy_count and remaining > 0:
        per_easy = remaining / easy_count
        distances = [per_easy if km is None else km for km in raw]
    else:
        fixed_only = [km or 0.0 for km in raw]
        total = sum(fixed_only)
        if total == 0:
            # Uniquement des footings sans volume restant
            distances = [weekly_km / len(roles)] * len(roles)
        else:
            distances = [km * weekly_km / total for km in fixed_only]

    return [round(km, 1) for km in distances]


def session_pace(role: SessionType, athlete: AthleteProfile) -> float:
    """Allure (min/km) utilisée pour estimer la durée"""
    if role in QUALITY_TYPES:
        return athlete.threshold_pace_min_per_km
    return athlete.easy_pace_min_per_km


def build_run(role: SessionType, km: float, athlete: AthleteProfile, title: Optional[str] = None) -> Session:
    """Crée une séance de course à pied"""
    return Session(
        type=role,
        title=title or f"{SESSION_TITLES.get(role, role.value)} {km:.1f} km",
        distance_km=km,
        duration_min=round(km * session_pace(role, athlete), 0),
        intensity_zones=list(SESSION_ZONES[role])
    )


def build_strength(duration_min: int = STRENGTH_DURATION_MIN) -> Session:
    return Session(
        type=SessionType.STRENGTH,
        title=f"Renforcement musculaire {duration_min} min",
        duration_min=duration_min,
        intensity_zones=[]
    )


def build_rest(title: str = "Repos") -> Session:
    return Session(type=SessionType.REST, title=title)


def distribute_vertical(sessions: list[Session], total_vertical: float) -> list[Session]:
    """
    Répartit le dénivelé cible au prorata km x poids du type de séance

    Les séances déjà dotées d'un dénivelé (course) sont laissées telles quelles.
    """
    runs = [s for s in sessions if s.distance_km and s.vertical_gain_m is None]
    weights = [s.distance_km * VERTICAL_WEIGHTS.get(s.type, DEFAULT_VERTICAL_WEIGHT) for s in runs]
    total_weight = sum(weights)
    if total_weight == 0 or total_vertical <= 0:
        return sessions

    by_id = {id(s): round(total_vertical * w / total_weight, 0) for s, w in zip(runs, weights)}
    return [
        s.model_copy(update={'vertical_gain_m': by_id[id(s)]}) if id(s) in by_id else s
        for s in sessions
    ]


def pick_strength_day(assignment: dict[int, SessionType], target_day: int = 3) -> Optional[int]:
    """Footing le plus proche du mercredi, pour y ajouter le renforcement"""
    easy_days = [d for d, role in assignment.items() if role == SessionType.EASY]
    if not easy_days:
        return None
    return min(easy_days, key=lambda d: (circular_distance(d, target_day), d))


def assemble_week(
    week_start: date,
    phase: TrainingPhase,
    sessions_by_day: dict[int, list[Session]],
    rest_days: list[int],
    target_distance_km: float = 0.0,
    target_vertical_m: float = 0.0,
    is_recovery_week: bool = False,
    notes: Optional[list[str]] = None
) -> WeeklyPlan:
    """Assemble et valide la semaine (7 jours, repos respectés)"""
    days: list[DailyPlan] = empty_week(week_start)
    for day in days:
        day.sessions = list(sessions_by_day.get(day.day_of_week, []))

    plan = WeeklyPlan(
        week_start=days[0].date,
        phase=phase,
        days=days,
        rest_days=sorted(rest_days),
        target_distance_km=round(target_distance_km, 1),
        target_vertical_m=round(target_vertical_m, 0),
        is_recovery_week=is_recovery_week,
        notes=notes or []
    )
    return validate_weekly_plan(plan, rest_days)
