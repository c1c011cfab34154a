"""
Zones de risque ACWR, tendance et soutenabilité
"""
import statistics
from typing import Optional

from config.settings import (
    ACWR_OPTIMAL_MIN, ACWR_OPTIMAL_MAX, ACWR_CAUTION_MAX, ACWR_HIGH_RISK_MAX,
    ACWR_TREND_DELTA, ACWR_VOLATILITY_MAX
)
from models.context import AcwrZone, RiskLevel
from models.metrics import TrendDirection


def get_zone(
    ratio: float,
    personalized_lower: Optional[float] = None,
    personalized_upper: Optional[float] = None
) -> AcwrZone:
    """Zone ACWR (bornes optimales personnalisables)"""
    lower = personalized_lower if personalized_lower is not None else ACWR_OPTIMAL_MIN
    upper = personalized_upper if personalized_upper is not None else ACWR_OPTIMAL_MAX

    if ratio < lower:
        return AcwrZone.UNDERLOAD
    if ratio <= upper:
        return AcwrZone.OPTIMAL
    if ratio <= ACWR_CAUTION_MAX:
        return AcwrZone.CAUTION
    if ratio <= ACWR_HIGH_RISK_MAX:
        return AcwrZone.HIGH_RISK
    return AcwrZone.EXTREME_RISK


def get_risk_level(zone: AcwrZone) -> RiskLevel:
    if zone == AcwrZone.EXTREME_RISK:
        return RiskLevel.EXTREME
    if zone == AcwrZone.HIGH_RISK:
        return RiskLevel.HIGH
    if zone == AcwrZone.CAUTION:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def get_trend(ratios: list[float]) -> TrendDirection:
    """
    Tendance sur les 4 derniers ratios

    Compare la moyenne des deux derniers à celle des deux précédents.
    Moins de 4 valeurs => stable.
    """
    if len(ratios) < 4:
        return TrendDirection.STABLE

    last4 = ratios[-4:]
    difference = (last4[2] + last4[3]) / 2 - (last4[0] + last4[1]) / 2
    if difference > ACWR_TREND_DELTA:
        return TrendDirection.INCREASING
    if difference < -ACWR_TREND_DELTA:
        return TrendDirection.DECREASING
    return TrendDirection.STABLE


def is_sustainable_pattern(ratios: list[float]) -> tuple[bool, str]:
    """
    Vérifie la soutenabilité des 3 dernières semaines

    Returns:
        (soutenable, raison)
    """
    if len(ratios) < 3:
        return True, "Insufficient data to assess pattern."

    last3 = ratios[-3:]
    if sum(1 for r in last3 if r > ACWR_CAUTION_MAX) >= 2:
        return False, (
            "Sustained high ACWR (>1.5) for multiple weeks: injury and overtraining risk."
        )

    if statistics.pstdev(last3) > ACWR_VOLATILITY_MAX:
        return False, "Training load is fluctuating significantly week-to-week."

    return True, "Load progression pattern appears sustainable."


def get_zone_advice(zone: AcwrZone, trend: TrendDirection) -> str:
    """Conseil d'ajustement selon la zone et la tendance"""
    if zone == AcwrZone.UNDERLOAD:
        if trend == TrendDirection.DECREASING:
            return "Add 1-2 runs or extend existing runs by 10-15% to maintain fitness."
        return "Gradual volume increases of 5-10% per week are safe for progression."

    if zone == AcwrZone.OPTIMAL:
        if trend == TrendDirection.INCREASING:
            return "Progression is well-managed. Maintain this approach while monitoring recovery."
        return "Continue current training load. Consider adding a quality session if feeling strong."

    if zone == AcwrZone.CAUTION:
        if trend == TrendDirection.INCREASING:
            return "Load is increasing too quickly. Cap this week at current volume and add recovery."
        return "Hold current volume steady for 1-2 weeks before further increases."

    return (
        "Reduce planned volume by 20-30%, add rest days, and resume progression "
        "only after 1-2 weeks of lower, stable load."
    )
