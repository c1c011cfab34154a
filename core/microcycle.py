"""
Générateur de microcycle (semaine type) lorsqu'une course est au calendrier
"""
from datetime import date, timedelta
from typing import Optional

from loguru import logger

from config.settings import (
    PHASE_VOLUME_MULTIPLIERS, PROGRESSION_CAP, RECOVERY_WEEK_REDUCTION, MAX_WEEKLY_KM_CEILING
)
from core.phase import is_recovery_week
from core.session_builder import (
    choose_training_days, assign_roles, allocate_distances, build_run, build_strength,
    build_rest, distribute_vertical, pick_strength_day, assemble_week, SESSION_ZONES
)
from models.athlete import AthleteProfile, TrainingConstraints
from models.race import RaceEntry, RacePriority
from models.training_plan import Session, SessionType, TrainingPhase, WeeklyPlan, get_monday


# Rôles par ordre de priorité: le premier est ancré sur le jour de sortie longue
PHASE_ROLES = {
    TrainingPhase.BASE: [
        SessionType.LONG_RUN, SessionType.EASY, SessionType.STRIDES,
        SessionType.EASY, SessionType.EASY, SessionType.EASY, SessionType.EASY,
    ],
    TrainingPhase.BUILD: [
        SessionType.LONG_RUN, SessionType.INTERVALS, SessionType.EASY, SessionType.TEMPO,
        SessionType.EASY, SessionType.EASY, SessionType.EASY,
    ],
    TrainingPhase.PEAK: [
        SessionType.LONG_RUN, SessionType.INTERVALS, SessionType.TEMPO, SessionType.EASY,
        SessionType.EASY, SessionType.EASY, SessionType.EASY,
    ],
    TrainingPhase.TAPER: [
        SessionType.LONG_RUN, SessionType.INTERVALS, SessionType.EASY, SessionType.STRIDES,
        SessionType.EASY, SessionType.EASY, SessionType.EASY,
    ],
}

LONG_RUN_SHARES = {
    TrainingPhase.BASE: (0.30, 25.0),
    TrainingPhase.BUILD: (0.30, 30.0),
    TrainingPhase.PEAK: (0.32, 35.0),
    TrainingPhase.TAPER: (0.25, 15.0),
}

STRENGTH_PHASES = {TrainingPhase.BASE, TrainingPhase.BUILD, TrainingPhase.PEAK}
MAX_RECOVERY_SESSIONS = 3
MAX_RACE_WEEK_RUNS = 3


def compute_weekly_volume(
    athlete: AthleteProfile,
    phase: TrainingPhase,
    week_number: int = 1,
    previous_week_km: Optional[float] = None,
    recovery_pattern: str = "3:1"
) -> tuple[float, bool]:
    """
    Volume cible de la semaine

    référence x multiplicateur de phase, plafonné à +10 % de la semaine
    précédente, -20 % en semaine allégée, puis borné au volume max.

    Returns:
        (volume km, semaine allégée)
    """
    target = athlete.baseline_weekly_km * PHASE_VOLUME_MULTIPLIERS[phase.value]

    if previous_week_km:
        target = min(target, previous_week_km * (1 + PROGRESSION_CAP))

    recovery = is_recovery_week(week_number, phase, recovery_pattern)
    if recovery:
        target *= 1 - RECOVERY_WEEK_REDUCTION

    target = min(target, athlete.max_weekly_volume, MAX_WEEKLY_KM_CEILING)
    return round(target, 1), recovery


def vertical_per_km(race: Optional[RaceEntry], phase: TrainingPhase) -> float:
    """Dénivelé par km: 40 m pour une course montagneuse, 20 m sinon"""
    per_km = 40.0 if race and race.elevation_gain_m > 1000 else 20.0
    if phase == TrainingPhase.PEAK:
        per_km *= 1.3
    elif phase in (TrainingPhase.TAPER, TrainingPhase.RACE_WEEK, TrainingPhase.RECOVERY):
        per_km *= 0.5
    return per_km


def race_duration_minutes(race: RaceEntry) -> float:
    """Durée prévue, sinon 6 min/km + 10 min par 100 m de D+"""
    if race.expected_minutes:
        return race.expected_minutes
    return round(race.distance_km * 6 + race.elevation_gain_m / 100 * 10, 0)


def build_race_session(race: RaceEntry) -> Session:
    return Session(
        type=SessionType.RACE,
        title=f"Course: {race.name}",
        distance_km=race.distance_km,
        duration_min=race_duration_minutes(race),
        intensity_zones=list(SESSION_ZONES[SessionType.RACE]),
        vertical_gain_m=race.elevation_gain_m
    )


class MicrocycleGenerator:
    """
    Génère une semaine d'entraînement adaptée à la phase

    Respecte strictement les jours de repos imposés; la sortie longue est
    ancrée sur le jour préféré (ou le plus proche disponible).
    """

    def __init__(
        self,
        athlete: AthleteProfile,
        constraints: Optional[TrainingConstraints] = None,
        recovery_pattern: str = "3:1"
    ):
        self.athlete = athlete
        self.constraints = constraints or athlete.constraints
        self.recovery_pattern = recovery_pattern
        self.rest_days = self.constraints.resolved_rest_days()
        self.available_days = [d for d in range(1, 8) if d not in self.rest_days]

    def generate(
        self,
        phase: TrainingPhase,
        race: Optional[RaceEntry],
        days_to_race: Optional[int],
        week_start: Optional[date] = None,
        week_number: int = 1,
        previous_week_km: Optional[float] = None,
        volume_scale: float = 1.0
    ) -> WeeklyPlan:
        """
        Génère la semaine

        Args:
            phase: Phase d'entraînement
            race: Course principale
            days_to_race: Jours restants à la date de référence
            week_start: Lundi de la semaine (défaut: déduit de la course)
            week_number: Numéro de semaine du cycle (semaines allégées)
            previous_week_km: Volume de la semaine précédente (plafond de progression)
            volume_scale: Facteur issu des ajustements (ACWR, feedback)

        Returns:
            WeeklyPlan validé
        """
        week_start = get_monday(week_start or self._reference_date(race, days_to_race))

        if phase == TrainingPhase.RACE_WEEK:
            return self._race_week(race, week_start, volume_scale)
        if phase == TrainingPhase.RECOVERY:
            return self._recovery_week(race, week_start, volume_scale)

        build_phase = phase if phase in PHASE_ROLES else TrainingPhase.BASE
        target_km, recovery = compute_weekly_volume(
            self.athlete, phase, week_number, previous_week_km, self.recovery_pattern
        )
        target_km = round(target_km * volume_scale, 1)
        target_vertical = round(target_km * vertical_per_km(race, phase), 0)

        roles = list(PHASE_ROLES[build_phase])
        if race and race.elevation_gain_m > 1000 and build_phase in (TrainingPhase.BUILD, TrainingPhase.PEAK):
            roles[1] = SessionType.HILLS

        days = choose_training_days(
            self.available_days, self.constraints.training_days_count(), self.constraints.long_run_day
        )
        roles = roles[:len(days)]
        assignment = assign_roles(days, roles)

        long_share, long_cap = LONG_RUN_SHARES[build_phase]
        ordered_days = list(assignment.keys())
        distances = allocate_distances(
            [assignment[d] for d in ordered_days], target_km, long_share, long_cap
        )

        runs = [build_run(assignment[d], km, self.athlete) for d, km in zip(ordered_days, distances)]
        runs = distribute_vertical(runs, target_vertical)
        sessions_by_day = {d: [run] for d, run in zip(ordered_days, runs)}

        notes = [f"Phase {phase.value}: {target_km:.1f} km, {target_vertical:.0f} m D+"]
        if phase in STRENGTH_PHASES:
            strength_day = pick_strength_day(assignment)
            if strength_day:
                sessions_by_day[strength_day].append(build_strength())
                notes.append(f"Renforcement combiné au footing du jour {strength_day}")
        if recovery:
            notes.append("Semaine allégée (-20 %)")

        logger.debug(f"Microcycle {phase.value} du {week_start}: {len(days)} jours, {target_km} km")
        return assemble_week(
            week_start, phase, sessions_by_day, self.rest_days,
            target_km, target_vertical, recovery, notes
        )

    def _reference_date(self, race: Optional[RaceEntry], days_to_race: Optional[int]) -> date:
        if race is not None and days_to_race is not None:
            return race.event_date - timedelta(days=days_to_race)
        return date.today()

    def _race_week(self, race: Optional[RaceEntry], week_start: date, volume_scale: float) -> WeeklyPlan:
        """
        Semaine de course: activation légère, course, puis repos si course A

        Une course tombant après le lundi suivant n'est pas dans la semaine:
        celle-ci garde le volume d'affûtage.
        """
        sessions_by_day: dict[int, list[Session]] = {}
        notes = []
        volume_phase = TrainingPhase.RACE_WEEK

        race_day = None
        if race is not None:
            offset = (race.event_date - week_start).days
            if 0 <= offset <= 6:
                race_day = offset + 1
            elif offset == 7:
                # Course le lundi suivant: le dimanche sert de veille de course
                race_day = 8
            elif offset > 7:
                volume_phase = TrainingPhase.TAPER
                notes.append(
                    f"Course {race.name} la semaine suivante ({race.event_date.isoformat()}): volume d'affûtage conservé"
                )

        target_km = round(
            self.athlete.baseline_weekly_km * PHASE_VOLUME_MULTIPLIERS[volume_phase.value] * volume_scale, 1
        )

        if race_day is not None and race_day <= 7:
            if race_day in self.rest_days:
                logger.warning(f"Course '{race.name}' sur un jour de repos imposé ({race_day}), non planifiée")
                notes.append("Course tombant sur un jour de repos imposé: non planifiée")
            else:
                sessions_by_day[race_day] = [build_race_session(race)]
                notes.append(f"Course {race.name} ({race.priority.value}) le jour {race_day}")

        last_pre_race_day = (race_day - 2) if race_day else 7
        pre_race_days = [d for d in self.available_days if d <= last_pre_race_day]
        count = min(MAX_RACE_WEEK_RUNS, self.constraints.training_days_count(), len(pre_race_days))
        chosen = sorted(pre_race_days[-count:]) if count else []
        vertical = round(target_km * vertical_per_km(race, TrainingPhase.RACE_WEEK), 0)
        if chosen:
            per_run = round(target_km / len(chosen), 1)
            activations = [
                build_run(
                    SessionType.STRIDES if index == len(chosen) - 1 else SessionType.EASY,
                    per_run, self.athlete, f"Activation {per_run:.1f} km"
                )
                for index in range(len(chosen))
            ]
            for day, run in zip(chosen, distribute_vertical(activations, vertical)):
                sessions_by_day[day] = [run]

        if race is not None and race_day is not None and race_day <= 7:
            post_days = [d for d in self.available_days if d > race_day]
            if race.priority == RacePriority.A:
                for day in post_days:
                    sessions_by_day[day] = [build_rest("Repos post-course")]
                if post_days:
                    notes.append("Repos complet après la course A")
            elif len(post_days) >= 2:
                sessions_by_day[post_days[1]] = [
                    build_run(SessionType.RECOVERY, round(target_km / 4, 1), self.athlete)
                ]

        return assemble_week(
            week_start, TrainingPhase.RACE_WEEK, sessions_by_day, self.rest_days,
            target_km, vertical, False, notes
        )

    def _recovery_week(self, race: Optional[RaceEntry], week_start: date, volume_scale: float) -> WeeklyPlan:
        """Semaine post-course: quelques footings de récupération en Z1"""
        target_km = round(
            self.athlete.baseline_weekly_km * PHASE_VOLUME_MULTIPLIERS[TrainingPhase.RECOVERY.value] * volume_scale, 1
        )
        count = min(MAX_RECOVERY_SESSIONS, self.constraints.training_days_count())
        days = choose_training_days(self.available_days, count, self.constraints.long_run_day)

        sessions_by_day = {}
        if days:
            per_run = round(target_km / len(days), 1)
            for day in days:
                sessions_by_day[day] = [build_run(SessionType.RECOVERY, per_run, self.athlete)]

        notes = ["Récupération post-course: pas d'intensité"]
        if race is not None:
            notes.append(f"Après {race.name}")
        return assemble_week(
            week_start, TrainingPhase.RECOVERY, sessions_by_day, self.rest_days,
            target_km, 0, False, notes
        )


def generate_microcycle(
    phase: TrainingPhase,
    athlete: AthleteProfile,
    race: Optional[RaceEntry],
    days_to_race: Optional[int],
    constraints: Optional[TrainingConstraints] = None,
    week_start: Optional[date] = None,
    week_number: int = 1,
    previous_week_km: Optional[float] = None,
    volume_scale: float = 1.0
) -> WeeklyPlan:
    """Helper: génère un microcycle en une ligne"""
    generator = MicrocycleGenerator(athlete, constraints)
    return generator.generate(
        phase, race, days_to_race, week_start, week_number, previous_week_km, volume_scale
    )
