"""
Payout multiplier tiers as configured by the player

An ordered, variable-length list of {multiplier, enabled}. Only the enabled
multipliers are passed to the calibrator.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from ..config import TierConfig


class TierConfigError(ValueError):
    """Invalid multiplier set from user input."""


@dataclass(frozen=True)
class MultiplierTier:
    multiplier: float
    enabled: bool = True


def _validate(tiers: Sequence[MultiplierTier], config: TierConfig) -> None:
    if not tiers:
        raise TierConfigError("at least one multiplier is required")
    if len(tiers) > config.max_tiers:
        raise TierConfigError(f"at most {config.max_tiers} tiers (got {len(tiers)})")
    prev: Optional[float] = None
    for t in tiers:
        m = float(t.multiplier)
        if not math.isfinite(m):
            raise TierConfigError(f"multiplier must be finite (got {t.multiplier!r})")
        if m < config.min_multiplier - 1e-9 or m > config.max_multiplier + 1e-9:
            raise TierConfigError(
                f"multiplier {m:g} outside [{config.min_multiplier:g}, {config.max_multiplier:g}]"
            )
        if prev is not None and m - prev < config.min_gap - 1e-9:
            raise TierConfigError(
                f"multipliers {prev:g} and {m:g} closer than min_gap={config.min_gap:g}"
            )
        prev = m
    if not any(t.enabled for t in tiers):
        raise TierConfigError("at least one tier must stay enabled")


class TierSet:
    """Sorted multiplier tiers with enable flags."""

    def __init__(
        self,
        tiers: Iterable[MultiplierTier],
        config: Optional[TierConfig] = None,
    ) -> None:
        self.config = config or TierConfig()
        ordered = sorted(tiers, key=lambda t: float(t.multiplier))
        _validate(ordered, self.config)
        self._tiers: list[MultiplierTier] = ordered

    @classmethod
    def default(cls, config: Optional[TierConfig] = None) -> "TierSet":
        config = config or TierConfig()
        return cls((MultiplierTier(float(m)) for m in config.default_multipliers), config)

    @property
    def tiers(self) -> list[MultiplierTier]:
        return list(self._tiers)

    def __len__(self) -> int:
        return len(self._tiers)

    def set_multipliers(self, values: Sequence[float]) -> None:
        """
        Replace the multiplier values.

        Enable flags are kept by position when the count is unchanged;
        otherwise every tier is enabled.
        """
        values = [float(v) for v in values]
        if len(values) == len(self._tiers):
            flags = [t.enabled for t in self._tiers]
        else:
            flags = [True] * len(values)
        pairs = sorted(zip(values, flags), key=lambda x: x[0])
        new = [MultiplierTier(m, e) for m, e in pairs]
        _validate(new, self.config)
        self._tiers = new

    def set_enabled_indices(self, indices: Iterable[int]) -> None:
        idx = set(int(i) for i in indices)
        bad = [i for i in idx if i < 0 or i >= len(self._tiers)]
        if bad:
            raise TierConfigError(f"tier index out of range: {sorted(bad)}")
        new = [MultiplierTier(t.multiplier, i in idx) for i, t in enumerate(self._tiers)]
        _validate(new, self.config)
        self._tiers = new

    def enabled_indices(self) -> list[int]:
        return [i for i, t in enumerate(self._tiers) if t.enabled]

    def active_multipliers(self) -> list[float]:
        return [t.multiplier for t in self._tiers if t.enabled]

    def to_dict(self) -> dict[str, Any]:
        return {"tiers": [{"multiplier": t.multiplier, "enabled": t.enabled} for t in self._tiers]}

    @classmethod
    def from_dict(cls, d: dict[str, Any], config: Optional[TierConfig] = None) -> "TierSet":
        rows = d.get("tiers") or []
        return cls(
            (MultiplierTier(float(r["multiplier"]), bool(r.get("enabled", True))) for r in rows),
            config,
        )
