"""
Lineup mu/sigma with the stacking correction

Picks that share a horse (e.g. its jockey and its trainer) move together.
Their per-horse risk is combined with perfect correlation:
    shared horse:  (sum_i sqrt(v_i)) ** 2
    single pick:   v
where v_i is a pick's variance split evenly over its horses. Means always add.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

from ..stats.entity import ConnectionDayStats


@dataclass(frozen=True)
class LineupAggregate:
    mu: float = 0.0
    variance: float = 0.0
    unique_horse_count: int = 0
    stacked_horse_count: int = 0
    naive_variance: float = 0.0

    @property
    def sigma(self) -> float:
        return math.sqrt(max(self.variance, 0.0))

    @property
    def stacking_adjustment(self) -> float:
        """Variance added by treating shared horses as correlated."""
        return self.variance - self.naive_variance

    def to_dict(self) -> dict[str, Any]:
        return {
            "mu": float(self.mu),
            "variance": float(self.variance),
            "sigma": float(self.sigma),
            "unique_horse_count": int(self.unique_horse_count),
            "stacked_horse_count": int(self.stacked_horse_count),
            "naive_variance": float(self.naive_variance),
            "stacking_adjustment": float(self.stacking_adjustment),
        }


def aggregate_lineup(
    connections: Sequence[ConnectionDayStats],
    *,
    raw: bool = False,
) -> LineupAggregate:
    """
    Aggregate the selected connections.

    raw=True uses the unsmoothed mu/variance carried on each connection.
    A connection with no horses counts as one synthetic horse of its own.
    """
    if not connections:
        return LineupAggregate()

    by_horse: dict[str, list[float]] = {}
    mu = 0.0
    naive = 0.0
    for i, conn in enumerate(connections):
        c_mu = conn.raw_mu if raw else conn.mu
        c_var = conn.raw_variance if raw else conn.variance
        mu += c_mu
        naive += c_var
        horse_ids = list(conn.horse_ids) or [f"__synthetic__{i}:{conn.id}"]
        per_horse = c_var / max(len(conn.horse_ids), 1)
        for hid in horse_ids:
            by_horse.setdefault(hid, []).append(per_horse)

    variance = 0.0
    stacked = 0
    for parts in by_horse.values():
        if len(parts) > 1:
            stacked += 1
            s = sum(math.sqrt(max(v, 0.0)) for v in parts)
            variance += s * s
        else:
            variance += parts[0]

    return LineupAggregate(
        mu=mu,
        variance=variance,
        unique_horse_count=len(by_horse),
        stacked_horse_count=stacked,
        naive_variance=naive,
    )
