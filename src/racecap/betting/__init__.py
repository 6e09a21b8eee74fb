"""
Lineup aggregation, payout tier calibration and settlement
"""

from .lineup import LineupAggregate, aggregate_lineup
from .targets import (
    TargetTier,
    calculate_expected_return,
    calculate_targets,
    evaluate_outcome,
    inverse_normal_cdf,
    payout_for,
)
from .tiers import MultiplierTier, TierConfigError, TierSet

__all__ = [
    "LineupAggregate",
    "aggregate_lineup",
    "TargetTier",
    "calculate_expected_return",
    "calculate_targets",
    "evaluate_outcome",
    "inverse_normal_cdf",
    "payout_for",
    "MultiplierTier",
    "TierConfigError",
    "TierSet",
]
