"""
Horse- and connection-level statistics

A horse takes its bucket's smoothed mean/variance. A connection's day total
is the sum over every horse it is attached to that day that ran and finished,
treating the horses as independent. Correlation between picks is handled later by the
lineup aggregator, which needs the horse ids recorded here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from ..data.entries import HistoricalEntry, Role, matches, role_names
from .bucket_stats import BucketStatsTable
from .odds_bucket import find_bucket


@dataclass(frozen=True)
class HorseStats:
    mean: float
    variance: float

    @property
    def sigma(self) -> float:
        return math.sqrt(max(self.variance, 0.0))


def stats_for_horse(
    entry: HistoricalEntry,
    table: BucketStatsTable,
    *,
    raw: bool = False,
) -> HorseStats:
    """
    Mean/variance of a horse from its odds bucket.

    raw=True returns the shrunk values before smoothing. A bucket missing
    from the table falls back to the table's prior.
    """
    stats = table.get(find_bucket(entry.odds).label)
    if stats is None:
        return HorseStats(mean=table.prior.mean, variance=table.prior.variance)
    if raw:
        return HorseStats(mean=stats.shrunk_mean, variance=stats.shrunk_variance)
    return HorseStats(mean=stats.smoothed_mean, variance=stats.smoothed_variance)


def connection_id(role: Role | str, name: str) -> str:
    return f"{Role(role).value}-{'-'.join(name.split()).lower()}"


@dataclass(frozen=True)
class ConnectionDayStats:
    name: str
    role: Role
    mu: float
    variance: float
    horse_ids: tuple[str, ...] = ()
    date: Optional[str] = None
    raw_mu: float = 0.0
    raw_variance: float = 0.0
    salary: float = 0.0
    avg_odds: float = 0.0
    wins: int = 0
    places: int = 0
    shows: int = 0

    @property
    def id(self) -> str:
        return connection_id(self.role, self.name)

    @property
    def sigma(self) -> float:
        return math.sqrt(max(self.variance, 0.0))

    @property
    def apps(self) -> int:
        return len(self.horse_ids)

    @property
    def win_pct(self) -> float:
        return 100.0 * self.wins / self.apps if self.apps > 0 else 0.0

    @property
    def itm_pct(self) -> float:
        return 100.0 * (self.wins + self.places + self.shows) / self.apps if self.apps > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role.value,
            "date": self.date,
            "mu": float(self.mu),
            "variance": float(self.variance),
            "sigma": float(self.sigma),
            "salary": float(self.salary),
            "apps": int(self.apps),
            "avg_odds": float(self.avg_odds),
            "wins": int(self.wins),
            "places": int(self.places),
            "shows": int(self.shows),
            "win_pct": float(self.win_pct),
            "itm_pct": float(self.itm_pct),
            "horse_ids": list(self.horse_ids),
        }


def stats_for_connection(
    name: str,
    role: Role | str,
    day_entries: Sequence[HistoricalEntry],
    table: BucketStatsTable,
    *,
    salary: float = 0.0,
) -> ConnectionDayStats:
    """
    Sum the bucket statistics of every horse `name` fills `role` on.

    Scratched horses and horses without a finish are skipped. Each horse
    counts once, including a sire that fills both sire slots.
    """
    role = Role(role)
    mu = var = raw_mu = raw_var = 0.0
    odds: list[float] = []
    finishes: list[int] = []
    horse_ids: list[str] = []
    seen: set[str] = set()
    dates: set[str] = set()
    for e in day_entries:
        if not e.is_valid or not matches(e, role, name):
            continue
        if e.horse_id in seen:
            continue
        seen.add(e.horse_id)
        dates.add(e.date)
        smooth = stats_for_horse(e, table)
        shrunk = stats_for_horse(e, table, raw=True)
        mu += smooth.mean
        var += smooth.variance
        raw_mu += shrunk.mean
        raw_var += shrunk.variance
        horse_ids.append(e.horse_id)
        odds.append(e.odds)
        finishes.append(e.finish)

    return ConnectionDayStats(
        name=name,
        role=role,
        mu=mu,
        variance=var,
        horse_ids=tuple(horse_ids),
        date=next(iter(dates)) if len(dates) == 1 else None,
        raw_mu=raw_mu,
        raw_variance=raw_var,
        salary=float(salary),
        avg_odds=sum(odds) / len(odds) if odds else 0.0,
        wins=finishes.count(1),
        places=finishes.count(2),
        shows=finishes.count(3),
    )


def connections_for_day(
    day_entries: Sequence[HistoricalEntry],
    table: BucketStatsTable,
    *,
    salaries: Optional[dict[str, float]] = None,
) -> list[ConnectionDayStats]:
    """
    Every jockey, trainer and sire running on the day, in that role order and
    first-appearance order within a role. `salaries` maps connection id to
    salary.
    """
    salaries = salaries or {}
    out: list[ConnectionDayStats] = []
    for role in Role:
        names: list[str] = []
        for e in day_entries:
            if not e.is_valid:
                continue
            for n in role_names(e, role):
                if n not in names:
                    names.append(n)
        for n in names:
            out.append(
                stats_for_connection(
                    n, role, day_entries, table, salary=salaries.get(connection_id(role, n), 0.0)
                )
            )
    return out


@dataclass(frozen=True)
class HistoryRow:
    date: str
    race: int
    horse: str
    finish: int
    odds: str
    expected_points: float
    actual_points: float


def connection_history(
    name: str,
    role: Role | str,
    entries: Iterable[HistoricalEntry],
    table: BucketStatsTable,
) -> list[HistoryRow]:
    """Every completed start of a connection, newest date first then race order."""
    rows = [
        HistoryRow(
            date=e.date,
            race=e.race,
            horse=e.horse,
            finish=e.finish,
            odds=e.ml_odds,
            expected_points=stats_for_horse(e, table).mean,
            actual_points=e.points,
        )
        for e in entries
        if e.is_valid and matches(e, role, name)
    ]
    rows.sort(key=lambda r: r.race)
    rows.sort(key=lambda r: r.date, reverse=True)
    return rows


__all__ = [
    "ConnectionDayStats",
    "HistoryRow",
    "HorseStats",
    "Role",
    "connection_history",
    "connection_id",
    "connections_for_day",
    "stats_for_connection",
    "stats_for_horse",
]
