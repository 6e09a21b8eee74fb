"""
Payout tier calibration

Given lineup mu/sigma, a stake and any set of multipliers m_1 < ... < m_k,
allocate the probability of reaching each tier as a power law

    P(points >= T_i) = c / m_i ** alpha

with c chosen so that the expected payout per unit stake is 1 - house_edge:

    sum_i m_i * (P_i - P_{i+1}) = c * sum_i (m_i - m_{i-1}) / m_i ** alpha

(m_0 = 0, P_{k+1} = 0). Thresholds come from a normal model of lineup points:
T_i = mu + z_i * sigma with z_i = Phi^-1(1 - P_i).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from ..config import CalibrationConfig

logger = logging.getLogger(__name__)


# Acklam's rational approximation to the normal quantile
_A = (
    -3.969683028665376e01,
    2.209460984245205e02,
    -2.759285104469687e02,
    1.383577518672690e02,
    -3.066479806614716e01,
    2.506628277459239e00,
)
_B = (
    -5.447609879822406e01,
    1.615858368580409e02,
    -1.556989798598866e02,
    6.680131188771972e01,
    -1.328068155288572e01,
)
_C = (
    -7.784894002430293e-03,
    -3.223964580411365e-01,
    -2.400758277161838e00,
    -2.549732539343734e00,
    4.374664141464968e00,
    2.938163982698783e00,
)
_D = (
    7.784695709041462e-03,
    3.224671290700398e-01,
    2.445134137142996e00,
    3.754408661907416e00,
)
_P_LOW = 0.02425
_P_HIGH = 1.0 - _P_LOW


def _tail_rational(q: float) -> float:
    num = ((((_C[0] * q + _C[1]) * q + _C[2]) * q + _C[3]) * q + _C[4]) * q + _C[5]
    den = (((_D[0] * q + _D[1]) * q + _D[2]) * q + _D[3]) * q + 1.0
    return num / den


def inverse_normal_cdf(p: float, *, refine: bool = True) -> float:
    """
    Phi^-1(p).

    Returns -inf / +inf at p <= 0 / p >= 1 and nan for nan. The rational
    approximation has relative error below 1.2e-9; one Halley step brings it
    to full double precision.
    """
    p = float(p)
    if math.isnan(p):
        return float("nan")
    if p <= 0.0:
        return float("-inf")
    if p >= 1.0:
        return float("inf")

    if p < _P_LOW:
        x = _tail_rational(math.sqrt(-2.0 * math.log(p)))
    elif p <= _P_HIGH:
        q = p - 0.5
        r = q * q
        num = (((((_A[0] * r + _A[1]) * r + _A[2]) * r + _A[3]) * r + _A[4]) * r + _A[5]) * q
        den = ((((_B[0] * r + _B[1]) * r + _B[2]) * r + _B[3]) * r + _B[4]) * r + 1.0
        x = num / den
    else:
        x = -_tail_rational(math.sqrt(-2.0 * math.log1p(-p)))

    # exp(x*x/2) overflows past |x| ~ 37
    if refine and abs(x) < 37.0:
        if p > 0.5:
            # upper tail: compare survival functions to avoid cancellation near 1
            e = (1.0 - p) - 0.5 * math.erfc(x / math.sqrt(2.0))
        else:
            e = 0.5 * math.erfc(-x / math.sqrt(2.0)) - p
        u = e * math.sqrt(2.0 * math.pi) * math.exp(x * x / 2.0)
        x = x - u / (1.0 + x * u / 2.0)
    return x


@dataclass(frozen=True)
class TargetTier:
    multiplier: float
    tail_probability: float
    z_value: float
    target_points: float
    payout: float

    @property
    def label(self) -> str:
        return f"{self.multiplier:g}x"

    def to_dict(self) -> dict[str, Any]:
        return {
            "multiplier": float(self.multiplier),
            "label": self.label,
            "tail_probability": float(self.tail_probability),
            "z_value": float(self.z_value),
            "target_points": float(self.target_points),
            "payout": float(self.payout),
        }


def _clean_multipliers(multipliers: Iterable[float]) -> list[float]:
    out: list[float] = []
    for m in multipliers:
        try:
            x = float(m)
        except (TypeError, ValueError):
            continue
        if math.isfinite(x) and x > 0:
            out.append(x)
        else:
            logger.debug(f"ignoring multiplier {m!r}")
    return sorted(out)


def tail_probabilities(
    multipliers: Sequence[float],
    *,
    house_edge: float = 0.20,
    alpha: float = 1.0,
) -> list[float]:
    """Power-law tail probabilities for ascending multipliers."""
    ms = _clean_multipliers(multipliers)
    if not ms:
        return []
    prev = 0.0
    denominator = 0.0
    for m in ms:
        denominator += (m - prev) / m**alpha
        prev = m
    if denominator <= 0:
        return [0.0 for _ in ms]
    c = (1.0 - house_edge) / denominator
    return [c / m**alpha for m in ms]


def calculate_targets(
    mu: float,
    sigma: float,
    stake: float,
    multipliers: Sequence[float],
    config: Optional[CalibrationConfig] = None,
) -> list[TargetTier]:
    """
    One TargetTier per multiplier, ascending.

    Empty multipliers give an empty list. sigma <= 0 collapses every
    threshold to mu.
    """
    config = config or CalibrationConfig()
    ms = _clean_multipliers(multipliers)
    tails = tail_probabilities(ms, house_edge=config.house_edge, alpha=config.alpha)

    tiers: list[TargetTier] = []
    for m, tail in zip(ms, tails):
        if tail >= 1.0:
            logger.debug(
                f"tier {m:g}x has tail probability {tail:.3f} >= 1; it is always paid "
                f"and the realised return will differ from {1.0 - config.house_edge:.2f}"
            )
        z = inverse_normal_cdf(1.0 - tail)
        target = mu + z * sigma if sigma > 0 else mu
        tiers.append(
            TargetTier(
                multiplier=m,
                tail_probability=tail,
                z_value=z,
                target_points=target,
                payout=stake * m,
            )
        )
    return tiers


def exclusive_probabilities(tiers: Sequence[TargetTier]) -> list[float]:
    """P(landing exactly on tier i) = P_i - P_{i+1}, ascending by multiplier."""
    ordered = sorted(tiers, key=lambda t: t.multiplier)
    out: list[float] = []
    for i, t in enumerate(ordered):
        nxt = ordered[i + 1].tail_probability if i + 1 < len(ordered) else 0.0
        out.append(t.tail_probability - nxt)
    return out


def calculate_expected_return(tiers: Sequence[TargetTier]) -> float:
    """Expected payout per unit stake (1 - house_edge for a calibrated set)."""
    ordered = sorted(tiers, key=lambda t: t.multiplier)
    return float(sum(t.multiplier * p for t, p in zip(ordered, exclusive_probabilities(ordered))))


def expected_payout(tiers: Sequence[TargetTier]) -> float:
    """Expected payout in stake currency."""
    ordered = sorted(tiers, key=lambda t: t.multiplier)
    return float(sum(t.payout * p for t, p in zip(ordered, exclusive_probabilities(ordered))))


def evaluate_outcome(actual_points: float, tiers: Sequence[TargetTier]) -> Optional[TargetTier]:
    """Highest tier whose threshold is met (>=), or None."""
    for t in sorted(tiers, key=lambda t: t.multiplier, reverse=True):
        if actual_points >= t.target_points:
            return t
    return None


def payout_for(actual_points: float, tiers: Sequence[TargetTier]) -> float:
    tier = evaluate_outcome(actual_points, tiers)
    return tier.payout if tier is not None else 0.0
