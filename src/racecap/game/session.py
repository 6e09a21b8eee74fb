"""
Game session: picks, stake, tiers and settlement for one race day
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from ..betting.lineup import LineupAggregate, aggregate_lineup
from ..betting.targets import TargetTier, calculate_targets, evaluate_outcome
from ..betting.tiers import TierSet
from ..config import Config, get_config
from ..data.entries import HistoricalEntry, actual_points
from ..stats.bucket_stats import BucketStatsTable
from ..stats.entity import ConnectionDayStats, connections_for_day

logger = logging.getLogger(__name__)


class GameStateError(RuntimeError):
    """play() called while the lineup/stake is not playable."""


@dataclass
class GameResult:
    """Settled play"""
    picks: list[ConnectionDayStats]
    lineup: LineupAggregate
    tiers: list[TargetTier]
    actual_points: float
    achieved_tier: Optional[TargetTier]
    stake: float
    payout: float
    bankroll_after: float
    points_by_pick: dict[str, float] = field(default_factory=dict)

    @property
    def is_win(self) -> bool:
        return self.achieved_tier is not None

    @property
    def profit(self) -> float:
        return self.payout - self.stake


class GameSession:
    """
    One player's picking/settling state for one race day.

    The bucket table and the day's entries are supplied by the caller;
    the session only tracks picks, stake, tiers and bankroll.
    """

    def __init__(
        self,
        table: BucketStatsTable,
        day_entries: Sequence[HistoricalEntry],
        config: Optional[Config] = None,
        *,
        bankroll: Optional[float] = None,
        tier_set: Optional[TierSet] = None,
    ):
        self.config = config or get_config()
        self.table = table
        self.day_entries = list(day_entries)
        self.tier_set = tier_set or TierSet.default(self.config.tiers)
        self.bankroll = float(
            self.config.game.initial_bankroll if bankroll is None else bankroll
        )
        self.stake = float(self.config.game.stake_min)
        self._picks: list[ConnectionDayStats] = []

    # --- connections -----------------------------------------------------

    def available_connections(
        self, salaries: Optional[dict[str, float]] = None
    ) -> list[ConnectionDayStats]:
        return connections_for_day(self.day_entries, self.table, salaries=salaries)

    # --- picks -----------------------------------------------------------

    @property
    def picks(self) -> list[ConnectionDayStats]:
        return list(self._picks)

    @property
    def total_salary(self) -> float:
        return float(sum(p.salary for p in self._picks))

    @property
    def total_apps(self) -> int:
        return sum(p.apps for p in self._picks)

    @property
    def avg_odds(self) -> float:
        """Mean of the picks' average odds (each pick weighted equally)."""
        if not self._picks:
            return 0.0
        return float(sum(p.avg_odds for p in self._picks) / len(self._picks))

    def is_picked(self, connection_id: str) -> bool:
        return any(p.id == connection_id for p in self._picks)

    def add_pick(self, connection: ConnectionDayStats) -> bool:
        """Add a pick; refused when already picked or over the salary cap."""
        if self.is_picked(connection.id):
            return False
        if self.total_salary + connection.salary > self.config.game.salary_max:
            logger.debug(f"pick {connection.id} refused: salary cap")
            return False
        self._picks.append(connection)
        return True

    def remove_pick(self, connection_id: str) -> bool:
        before = len(self._picks)
        self._picks = [p for p in self._picks if p.id != connection_id]
        return len(self._picks) < before

    def clear_picks(self) -> None:
        self._picks = []
        self.stake = float(self.config.game.stake_min)

    # --- stake / tiers ---------------------------------------------------

    def set_stake(self, amount: float) -> float:
        """Set the stake, clipped to the configured range."""
        g = self.config.game
        self.stake = float(min(max(float(amount), g.stake_min), g.stake_max))
        return self.stake

    def set_multipliers(self, values: Sequence[float]) -> None:
        self.tier_set.set_multipliers(values)

    def set_enabled_tier_indices(self, indices: Iterable[int]) -> None:
        self.tier_set.set_enabled_indices(indices)

    # --- derived ---------------------------------------------------------

    @property
    def lineup(self) -> LineupAggregate:
        return aggregate_lineup(self._picks)

    @property
    def tiers(self) -> list[TargetTier]:
        lineup = self.lineup
        return calculate_targets(
            lineup.mu,
            lineup.sigma,
            self.stake,
            self.tier_set.active_multipliers(),
            self.config.calibration,
        )

    @property
    def is_salary_valid(self) -> bool:
        g = self.config.game
        return g.salary_min <= self.total_salary <= g.salary_max

    def play_blockers(self) -> list[str]:
        """Reasons the current state cannot be played (empty when playable)."""
        g = self.config.game
        reasons: list[str] = []
        if not self.is_salary_valid:
            reasons.append("salary")
        if not (g.stake_min <= self.stake <= g.stake_max):
            reasons.append("stake_range")
        if self.stake > self.bankroll:
            reasons.append("bankroll")
        if self.lineup.mu <= 0:
            reasons.append("no_expected_points")
        if not self.tier_set.active_multipliers():
            reasons.append("no_tiers")
        return reasons

    @property
    def can_play(self) -> bool:
        return not self.play_blockers()

    # --- settlement ------------------------------------------------------

    def play(self) -> GameResult:
        """Settle the current lineup against the day's realized points."""
        blockers = self.play_blockers()
        if blockers:
            raise GameStateError(f"cannot play: {','.join(blockers)}")

        lineup = self.lineup
        tiers = self.tiers
        points_by_pick = {
            p.id: actual_points(p.name, p.role, self.day_entries) for p in self._picks
        }
        total = float(sum(points_by_pick.values()))
        achieved = evaluate_outcome(total, tiers)
        payout = achieved.payout if achieved is not None else 0.0

        self.bankroll = self.bankroll - self.stake + payout
        logger.info(
            f"Settled: picks={len(self._picks)}, mu={lineup.mu:.2f}, sigma={lineup.sigma:.2f}, "
            f"actual={total:.2f}, tier={achieved.label if achieved else None}, "
            f"stake={self.stake:.2f}, payout={payout:.2f}, bankroll={self.bankroll:.2f}"
        )
        return GameResult(
            picks=list(self._picks),
            lineup=lineup,
            tiers=tiers,
            actual_points=total,
            achieved_tier=achieved,
            stake=self.stake,
            payout=payout,
            bankroll_after=self.bankroll,
            points_by_pick=points_by_pick,
        )
