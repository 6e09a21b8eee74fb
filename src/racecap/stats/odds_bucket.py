"""
Morning-line odds buckets

21 fixed decimal-odds ranges, each with the historical salary paid for a horse
in that range, plus 3 "also eligible" (AE) ranges used for sire context only.

Ranges are ascending and inclusive at both ends. They are not perfectly
contiguous at the hundredths (0.60 -> 0.61, ...): any value that lands in no
range falls back to the highest bucket, so lookups never fail.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OddsBucket:
    label: str
    min_odds: float
    max_odds: float
    salary: int
    decimal_odds: str = ""  # display only
    probability_range: str = ""  # display only

    def contains(self, odds: float) -> bool:
        return self.min_odds <= odds <= self.max_odds

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "min_odds": float(self.min_odds),
            "max_odds": float(self.max_odds),
            "salary": int(self.salary),
        }


ODDS_BUCKETS: tuple[OddsBucket, ...] = (
    OddsBucket("1/5 to 3/5", 0.20, 0.60, 2600, "0.20 - 0.60", "83.33% - 55.87%"),
    OddsBucket("4/5", 0.61, 0.80, 2500, "0.8", "55.56% - 50.25%"),
    OddsBucket("EVEN (1/1)", 0.81, 1.00, 2400, "1", "50.00% - 45.66%"),
    OddsBucket("6/5", 1.01, 1.20, 2300, "1.2", "45.45% - 41.84%"),
    OddsBucket("7/5", 1.21, 1.40, 2200, "1.4", "41.67% - 38.61%"),
    OddsBucket("8/5", 1.41, 1.60, 2100, "1.6", "38.46% - 35.84%"),
    OddsBucket("9/5", 1.61, 1.80, 2000, "1.8", "35.71% - 33.44%"),
    OddsBucket("2/1", 1.81, 2.00, 1900, "2", "33.33% - 28.65%"),
    OddsBucket("5/2", 2.01, 2.50, 1700, "2.5", "28.57% - 25.06%"),
    OddsBucket("3/1", 2.51, 3.00, 1600, "3", "25.00% - 22.27%"),
    OddsBucket("7/2", 3.01, 3.50, 1500, "3.5", "22.22% - 20.04%"),
    OddsBucket("4/1", 3.51, 4.00, 1400, "4", "20.00% - 18.21%"),
    OddsBucket("9/2 to 5/1", 4.01, 5.00, 1300, "4.50 - 5.00", "18.18% - 14.31%"),
    OddsBucket("6/1 to 7/1", 5.01, 7.00, 1200, "6.00 - 7.00", "14.29% - 11.12%"),
    OddsBucket("8/1 to 9/1", 7.01, 9.00, 1000, "8.00 - 9.00", "11.11% - 9.10%"),
    OddsBucket("10/1 to 11/1", 9.01, 11.00, 900, "10.00 - 11.00", "9.09% - 7.70%"),
    OddsBucket("12/1 to 14/1", 11.01, 14.00, 800, "12.00 - 14.00", "7.69% - 6.25%"),
    OddsBucket("15/1 to 19/1", 14.01, 19.00, 700, "15.00 - 19.00", "6.25% - 4.76%"),
    OddsBucket("20/1 to 29/1", 19.01, 29.00, 600, "20.00 - 29.00", "4.76% - 3.23%"),
    OddsBucket("30/1 to 49/1", 29.01, 49.00, 400, "30.00 - 49.00", "3.23% - 1.96%"),
    OddsBucket("50/1+", 49.01, 999.00, 200, ">= 50.00", "1.96% - 0.00%"),
)

AE_BUCKETS: tuple[OddsBucket, ...] = (
    OddsBucket("AE 0 to 5.99", 0.00, 5.99, 300, "0.00 - 5.99", "100.00% - 14.31%"),
    OddsBucket("AE 6 to 12.99", 6.00, 12.99, 200, "6.00 - 12.99", "14.29% - 7.15%"),
    OddsBucket("AE 13+", 13.00, 999.00, 100, ">= 13.00", "7.14% - 0.00%"),
)

BUCKET_LABELS: tuple[str, ...] = tuple(b.label for b in ODDS_BUCKETS)


def _lookup(odds: Optional[float], table: Sequence[OddsBucket]) -> OddsBucket:
    try:
        x = float(odds)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        x = float("nan")
    if math.isfinite(x):
        for bucket in table:
            if bucket.contains(x):
                return bucket
    logger.debug(f"odds={odds!r} outside all bucket ranges; using {table[-1].label}")
    return table[-1]


def find_bucket(odds: Optional[float]) -> OddsBucket:
    """Bucket for a decimal morning-line price (highest bucket when nothing matches)."""
    return _lookup(odds, ODDS_BUCKETS)


def find_ae_bucket(odds: Optional[float]) -> OddsBucket:
    """AE bucket for a decimal price (sire context)."""
    return _lookup(odds, AE_BUCKETS)


def bucket_index(label: str) -> Optional[int]:
    """Rank of a bucket label in ascending-odds order."""
    try:
        return BUCKET_LABELS.index(label)
    except ValueError:
        return None
