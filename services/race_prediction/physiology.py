"""
Physiological formulas shared by the signal extractors.

- Daniels oxygen cost of running (velocity -> VO2)
- Swain-Londeree %HRR -> %VO2max
- VDOT clamping
- Exponential recency weighting and simple least-squares regression
"""

from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple, Union
import math

from services.race_prediction.constants import VDOT_MAX, VDOT_MIN


def vo2_from_velocity(velocity_m_per_min: float) -> float:
    """Oxygen cost (ml/kg/min) of running at velocity v (m/min): -4.60 + 0.182258v + 0.000104v²."""
    return -4.60 + 0.182258 * velocity_m_per_min + 0.000104 * velocity_m_per_min * velocity_m_per_min


def pct_vo2max_from_hrr(hr_reserve_pct: float) -> Optional[float]:
    """
    Fraction of VO2max from fraction of heart-rate reserve (Swain-Londeree).

    %VO2max = 1.4854 * %HRR - 0.3702

    Returns None when the fit lands outside (0.2, 1.0], where the linear
    relationship no longer holds.
    """
    pct = 1.4854 * hr_reserve_pct - 0.3702
    if pct <= 0.2 or pct > 1.0:
        return None
    return pct


def hr_reserve_pct(avg_hr: float, resting_hr: float, max_hr: float) -> Optional[float]:
    """(HR - resting) / (max - resting), or None if the range is not positive."""
    hr_range = max_hr - resting_hr
    if hr_range <= 0:
        return None
    return (avg_hr - resting_hr) / hr_range


def clamp_vdot(vdot: float) -> float:
    """Keep any VDOT inside the physiologically plausible 15-85 band."""
    return max(VDOT_MIN, min(VDOT_MAX, vdot))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# =============================================================================
# RECENCY
# =============================================================================

def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def days_between(then: Union[date, datetime], as_of: Union[date, datetime]) -> int:
    """Whole days from `then` to `as_of`; future dates count as today."""
    return max(0, (_as_date(as_of) - _as_date(then)).days)


def exponential_decay(days_ago: float, half_life_days: float) -> float:
    """Recency weight that halves every half_life_days."""
    return math.exp(-0.693 * days_ago / half_life_days)


# =============================================================================
# REGRESSION
# =============================================================================

def linear_regression(x: Sequence[float], y: Sequence[float]) -> Optional[Tuple[float, float, float]]:
    """
    Ordinary least squares: y = slope * x + intercept

    Returns:
        (slope, intercept, r_squared), or None when x has no spread
    """
    n = len(x)
    if n < 2 or n != len(y):
        return None

    x_mean = sum(x) / n
    y_mean = sum(y) / n

    numerator = sum((xi - x_mean) * (yi - y_mean) for xi, yi in zip(x, y))
    denominator = sum((xi - x_mean) ** 2 for xi in x)

    if denominator == 0:
        return None

    slope = numerator / denominator
    intercept = y_mean - slope * x_mean

    ss_res = sum((yi - (slope * xi + intercept)) ** 2 for xi, yi in zip(x, y))
    ss_tot = sum((yi - y_mean) ** 2 for yi in y)
    r_squared = 1 - ss_res / ss_tot if ss_tot > 0 else 0.0

    return slope, intercept, r_squared


def weighted_mean(values: List[Tuple[float, float]]) -> Optional[float]:
    """Mean of (value, weight) pairs; None when the weights sum to zero."""
    total_weight = sum(w for _, w in values)
    if total_weight <= 0:
        return None
    return sum(v * w for v, w in values) / total_weight
