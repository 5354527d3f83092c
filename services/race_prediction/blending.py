"""
Signal blending.

Absolute signals are averaged with weight = prior * confidence. The EF trend
modifier is then added on top (scaled) if it is confident enough. How well
the absolute signals agree sets the agreement score and the VDOT range.
"""

import logging
import math
from typing import List, Optional, Sequence

from core.config import settings
from services.race_prediction.constants import (
    MODIFIER_BLEND_FACTOR,
    MODIFIER_MIN_CONFIDENCE,
    VDOT_MAX,
    VDOT_MIN,
)
from services.race_prediction.models import BlendResult, SignalContribution, VdotRange
from services.race_prediction.physiology import clamp, clamp_vdot, weighted_mean

logger = logging.getLogger(__name__)


def split_signals(signals: Sequence[SignalContribution]):
    """Return (absolute signals, modifier or None)."""
    absolute = [s for s in signals if not s.is_modifier]
    modifier: Optional[SignalContribution] = next((s for s in signals if s.is_modifier), None)
    return absolute, modifier


def agreement_score_from_std(std_dev: float) -> float:
    """Std dev under 0.5 VDOT scores 1.0; every further 5 points costs 1.0, floored at 0.1."""
    return clamp(1.0 - (std_dev - 0.5) / 5, 0.1, 1.0)


def describe_agreement(absolute: List[SignalContribution], blended: float, std_dev: float) -> str:
    count = len(absolute)
    if count < 2:
        return "Single signal — no cross-validation possible"
    if std_dev < 1:
        return f"Excellent agreement between {count} signals (±{std_dev:.1f} VDOT)"
    if std_dev < 2.5:
        return f"Good agreement between {count} signals (±{std_dev:.1f} VDOT)"
    if std_dev < 4:
        return f"Moderate disagreement between signals (±{std_dev:.1f} VDOT); predictions less certain"

    outlier = max(absolute, key=lambda s: abs(s.estimated_vdot - blended))
    return (
        f"Significant disagreement (±{std_dev:.1f} VDOT). "
        f"\"{outlier.name}\" is the main outlier at VDOT {outlier.estimated_vdot:.1f}"
    )


def _default_blend() -> BlendResult:
    vdot = settings.PREDICTION_DEFAULT_VDOT
    spread = settings.PREDICTION_DEFAULT_VDOT_SPREAD
    return BlendResult(
        vdot=vdot,
        range=VdotRange(low=clamp_vdot(vdot - spread), high=clamp_vdot(vdot + spread)),
        agreement_score=0.0,
        agreement_details="No signals available",
    )


def blend_signals(signals: Sequence[SignalContribution]) -> BlendResult:
    """
    Merge contributions into one VDOT, a range and an agreement score.

    The modifier never enters the weighted mean or the spread.
    """
    absolute, modifier = split_signals(signals)
    if not absolute:
        logger.debug("No absolute signals; using default VDOT %.1f", settings.PREDICTION_DEFAULT_VDOT)
        return _default_blend()

    blended = weighted_mean([(s.estimated_vdot, s.weight * s.confidence) for s in absolute])
    if blended is None:
        blended = settings.PREDICTION_DEFAULT_VDOT

    if modifier is not None and modifier.confidence > MODIFIER_MIN_CONFIDENCE:
        blended += MODIFIER_BLEND_FACTOR * modifier.estimated_vdot

    blended = clamp_vdot(blended)

    if len(absolute) > 1:
        std_dev = math.sqrt(sum((s.estimated_vdot - blended) ** 2 for s in absolute) / len(absolute))
    else:
        std_dev = 0.0

    agreement = agreement_score_from_std(std_dev)
    uncertainty = max(1.0, std_dev * 1.2)

    return BlendResult(
        vdot=round(blended, 1),
        range=VdotRange(
            low=round(max(VDOT_MIN, blended - uncertainty), 1),
            high=round(min(VDOT_MAX, blended + uncertainty), 1),
        ),
        agreement_score=round(agreement, 2),
        agreement_details=describe_agreement(absolute, blended, std_dev),
    )
