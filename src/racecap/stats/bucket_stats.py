"""
Per-bucket point statistics

Realized points are pooled by morning-line odds bucket. Each bucket's sample
mean/variance is shrunk toward a global prior (pseudo-count k), then the
shrunk curves are smoothed with a 3-point weighted moving average over the
ascending-odds bucket order.

Notes:
  - the prior is returned inside BucketStatsTable, never cached at module level
  - the shrinkage step floors the variance at variance_floor_frac * prior
    variance; smoothing can take edge buckets below that floor (accepted)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional, Sequence

import numpy as np
import pandas as pd  # type: ignore[import-untyped]

from ..config import StatisticsConfig
from ..data.entries import HistoricalEntry, entries_to_frame
from .odds_bucket import ODDS_BUCKETS, OddsBucket, find_bucket

logger = logging.getLogger(__name__)


def sample_variance(values: Sequence[float] | np.ndarray) -> float:
    """Unbiased (n-1) variance; 0 for fewer than two values."""
    v = np.asarray(values, dtype=float)
    if v.size <= 1:
        return 0.0
    return float(np.var(v, ddof=1))


@dataclass(frozen=True)
class GlobalPrior:
    mean: float = 0.0
    variance: float = 0.0
    n: int = 0

    @property
    def sigma(self) -> float:
        return math.sqrt(max(self.variance, 0.0))


def build_prior(points: Iterable[float]) -> GlobalPrior:
    """Prior over every valid entry's points (all zeros when empty)."""
    v = np.asarray(list(points), dtype=float)
    if v.size == 0:
        return GlobalPrior()
    return GlobalPrior(mean=float(v.mean()), variance=sample_variance(v), n=int(v.size))


def shrink(
    n: int,
    raw_mean: float,
    raw_variance: float,
    prior: GlobalPrior,
    *,
    k: float = 10.0,
    variance_floor_frac: float = 0.1,
) -> tuple[float, float]:
    """
    Bayesian shrinkage toward the prior.

    mean = (n * raw_mean + k * prior_mean) / (n + k)
    var  = max((n * raw_var + k * prior_var) / (n + k), floor * prior_var)

    An empty bucket gets the prior exactly.
    """
    if n <= 0:
        return float(prior.mean), float(prior.variance)
    w = float(n) + float(k)
    mean = (n * raw_mean + k * prior.mean) / w
    var = (n * raw_variance + k * prior.variance) / w
    var = max(var, float(variance_floor_frac) * prior.variance)
    return float(mean), float(var)


def smooth_3(
    values: Sequence[float] | np.ndarray,
    weights: tuple[float, float, float] = (0.25, 0.5, 0.25),
) -> np.ndarray:
    """3-point weighted moving average; each edge stands in for its missing neighbour."""
    v = np.asarray(values, dtype=float)
    if v.size == 0:
        return v
    w_prev, w_cur, w_next = (float(x) for x in weights)
    padded = np.concatenate([v[:1], v, v[-1:]])
    return w_prev * padded[:-2] + w_cur * padded[1:-1] + w_next * padded[2:]


@dataclass(frozen=True)
class BucketStatistics:
    bucket: OddsBucket
    n: int
    raw_mean: float
    raw_variance: float
    shrunk_mean: float
    shrunk_variance: float
    smoothed_mean: float
    smoothed_variance: float
    # descriptive
    wins: int = 0
    places: int = 0
    shows: int = 0
    dnf: int = 0
    total_points: float = 0.0
    total_salary: float = 0.0

    @property
    def label(self) -> str:
        return self.bucket.label

    @property
    def sigma(self) -> float:
        return math.sqrt(max(self.shrunk_variance, 0.0))

    @property
    def smoothed_sigma(self) -> float:
        return math.sqrt(max(self.smoothed_variance, 0.0))

    @property
    def win_pct(self) -> float:
        return 100.0 * self.wins / self.n if self.n > 0 else 0.0

    @property
    def itm_pct(self) -> float:
        return 100.0 * (self.wins + self.places + self.shows) / self.n if self.n > 0 else 0.0

    @property
    def points_per_1000(self) -> float:
        """Points per 1000 of salary spent on the bucket's horses."""
        return 1000.0 * self.total_points / self.total_salary if self.total_salary > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.bucket.label,
            "salary": int(self.bucket.salary),
            "n": int(self.n),
            "raw_mean": float(self.raw_mean),
            "raw_variance": float(self.raw_variance),
            "shrunk_mean": float(self.shrunk_mean),
            "shrunk_variance": float(self.shrunk_variance),
            "smoothed_mean": float(self.smoothed_mean),
            "smoothed_variance": float(self.smoothed_variance),
            "wins": int(self.wins),
            "places": int(self.places),
            "shows": int(self.shows),
            "dnf": int(self.dnf),
            "win_pct": float(self.win_pct),
            "itm_pct": float(self.itm_pct),
            "points_per_1000": float(self.points_per_1000),
        }


@dataclass(frozen=True)
class BucketStatsTable:
    """
    Bucket statistics keyed by label, in ascending-odds order, together with
    the prior they were shrunk toward.
    """

    stats: dict[str, BucketStatistics]
    prior: GlobalPrior = field(default_factory=GlobalPrior)
    shrinkage_k: float = 10.0
    variance_floor_frac: float = 0.1
    smoothing_weights: tuple[float, float, float] = (0.25, 0.5, 0.25)

    def __getitem__(self, label: str) -> BucketStatistics:
        return self.stats[label]

    def __contains__(self, label: object) -> bool:
        return label in self.stats

    def __iter__(self) -> Iterator[str]:
        return iter(self.stats)

    def __len__(self) -> int:
        return len(self.stats)

    def get(self, label: str) -> Optional[BucketStatistics]:
        return self.stats.get(label)

    def items(self):
        return self.stats.items()

    def values(self):
        return self.stats.values()

    def for_odds(self, odds: Optional[float]) -> Optional[BucketStatistics]:
        return self.stats.get(find_bucket(odds).label)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([s.to_dict() for s in self.stats.values()])

    def to_dict(self) -> dict[str, Any]:
        return {
            "prior": {"mean": self.prior.mean, "variance": self.prior.variance, "n": self.prior.n},
            "shrinkage_k": float(self.shrinkage_k),
            "variance_floor_frac": float(self.variance_floor_frac),
            "smoothing_weights": [float(w) for w in self.smoothing_weights],
            "buckets": [s.to_dict() for s in self.stats.values()],
        }


def build_bucket_statistics(
    entries: Iterable[HistoricalEntry],
    settings: Optional[StatisticsConfig] = None,
) -> BucketStatsTable:
    """
    Build the full bucket table from historical entries.

    Scratched entries and entries without a finish are ignored. Always
    returns one row per bucket, populated or not.
    """
    settings = settings or StatisticsConfig()
    k = float(settings.shrinkage_k)
    floor_frac = float(settings.variance_floor_frac)
    weights = tuple(float(w) for w in settings.smoothing_weights)

    valid = [e for e in entries if e.is_valid]
    prior = build_prior(e.points for e in valid)

    df = entries_to_frame(valid)
    df["bucket"] = [find_bucket(o).label for o in df["odds"]]
    groups = {label: g for label, g in df.groupby("bucket")}

    raw: list[dict[str, Any]] = []
    for bucket in ODDS_BUCKETS:
        g = groups.get(bucket.label)
        if g is None or g.empty:
            raw.append({"bucket": bucket, "n": 0, "mean": 0.0, "var": 0.0})
            continue
        pts = g["points"].to_numpy(dtype=float)
        finish = g["finish"].to_numpy(dtype=int)
        raw.append(
            {
                "bucket": bucket,
                "n": int(pts.size),
                "mean": float(pts.mean()),
                "var": sample_variance(pts),
                "wins": int((finish == 1).sum()),
                "places": int((finish == 2).sum()),
                "shows": int((finish == 3).sum()),
                "dnf": int((finish > 3).sum()),
                "total_points": float(pts.sum()),
                "total_salary": float(g["salary"].to_numpy(dtype=float).sum()),
            }
        )

    shrunk = [
        shrink(r["n"], r["mean"], r["var"], prior, k=k, variance_floor_frac=floor_frac) for r in raw
    ]
    mean_s = smooth_3([m for m, _ in shrunk], weights)  # type: ignore[arg-type]
    var_s = smooth_3([v for _, v in shrunk], weights)  # type: ignore[arg-type]

    stats: dict[str, BucketStatistics] = {}
    for i, r in enumerate(raw):
        bucket = r["bucket"]
        stats[bucket.label] = BucketStatistics(
            bucket=bucket,
            n=r["n"],
            raw_mean=r["mean"],
            raw_variance=r["var"],
            shrunk_mean=shrunk[i][0],
            shrunk_variance=shrunk[i][1],
            smoothed_mean=float(mean_s[i]),
            smoothed_variance=float(var_s[i]),
            wins=r.get("wins", 0),
            places=r.get("places", 0),
            shows=r.get("shows", 0),
            dnf=r.get("dnf", 0),
            total_points=r.get("total_points", 0.0),
            total_salary=r.get("total_salary", 0.0),
        )

    n_populated = sum(1 for r in raw if r["n"] > 0)
    logger.info(
        f"Bucket statistics built: valid={prior.n}, populated_buckets={n_populated}/{len(raw)}, "
        f"prior_mean={prior.mean:.3f}, prior_var={prior.variance:.3f}"
    )
    return BucketStatsTable(
        stats=stats,
        prior=prior,
        shrinkage_k=k,
        variance_floor_frac=floor_frac,
        smoothing_weights=weights,  # type: ignore[arg-type]
    )
