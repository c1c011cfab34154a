"""
Exceptions du moteur de décision
"""


class EngineError(Exception):
    """Erreur de base du moteur d'entraînement"""


class PlanInvariantError(EngineError):
    """Un invariant structurel du plan hebdomadaire est violé"""


class PlanLengthError(PlanInvariantError):
    """Le plan ne contient pas exactement 7 jours"""


class WeekAlignmentError(PlanInvariantError):
    """La semaine ne commence pas un lundi ou les dates ne se suivent pas"""


class RestDayViolationError(PlanInvariantError):
    """Une séance est programmée sur un jour de repos imposé"""


class WorkoutParityError(PlanInvariantError):
    """La conversion séances -> workouts a dupliqué ou inventé des entrées"""


class InvalidObservationError(EngineError):
    """Observation incompatible avec le modèle bayésien"""


class AthleteNotFoundError(EngineError):
    """Aucun profil pour cet identifiant"""


class WeatherUnavailableError(EngineError):
    """Service météo non configuré ou injoignable"""
