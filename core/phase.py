"""
Détermination de la phase d'entraînement à partir du nombre de jours avant la course
"""
from typing import Optional

from config.settings import PHASE_THRESHOLDS
from models.training_plan import TrainingPhase


def determine_phase(days_to_race: Optional[int], thresholds: Optional[dict] = None) -> TrainingPhase:
    """
    Fonction en escalier sur les jours restants

    - pas de course => maintenance
    - course terminée depuis au plus 7 jours => recovery
    - > 112 base, > 56 build, > 21 peak, > 7 taper, sinon race_week

    Args:
        days_to_race: Jours avant la course principale (négatif = passée)
        thresholds: Seuils (défaut PHASE_THRESHOLDS)

    Returns:
        TrainingPhase
    """
    t = thresholds or PHASE_THRESHOLDS

    if days_to_race is None:
        return TrainingPhase.MAINTENANCE
    if days_to_race < 0:
        if days_to_race >= -t['recovery_window']:
            return TrainingPhase.RECOVERY
        return TrainingPhase.MAINTENANCE
    if days_to_race > t['base']:
        return TrainingPhase.BASE
    if days_to_race > t['build']:
        return TrainingPhase.BUILD
    if days_to_race > t['peak']:
        return TrainingPhase.PEAK
    if days_to_race > t['taper']:
        return TrainingPhase.TAPER
    return TrainingPhase.RACE_WEEK


def is_recovery_week(week_number: int, phase: TrainingPhase, pattern: str = "3:1") -> bool:
    """
    Semaine allégée dans un bloc de charge

    Args:
        week_number: Numéro de semaine dans le cycle (1 = première)
        phase: Phase courante (seules base/build/peak alternent)
        pattern: "3:1" (3 semaines de charge, 1 allégée) ou "2:1"
    """
    if phase not in (TrainingPhase.BASE, TrainingPhase.BUILD, TrainingPhase.PEAK):
        return False
    cycle = 4 if pattern == "3:1" else 3
    return week_number > 0 and week_number % cycle == 0
