"""
Settings management

Reads config/config.yaml and validates it with Pydantic.

Path resolution:
    1. RACECAP_CONFIG_PATH environment variable, if set
    2. otherwise walk up from cwd looking for config/config.yaml
    3. otherwise fall back to the defaults below
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, Field, field_validator


def find_project_root() -> Optional[Path]:
    """
    Locate the project root (the directory holding config/config.yaml).
    """
    env_path = os.environ.get("RACECAP_PROJECT_ROOT")
    if env_path:
        root = Path(env_path)
        if root.exists():
            return root

    current = Path.cwd()
    for _ in range(10):
        config_path = current / "config" / "config.yaml"
        if config_path.exists():
            return current
        if current.parent == current:
            break
        current = current.parent

    # src/racecap/config.py -> project root
    module_path = Path(__file__).resolve()
    for _ in range(10):
        config_path = module_path / "config" / "config.yaml"
        if config_path.exists():
            return module_path
        if module_path.parent == module_path:
            break
        module_path = module_path.parent

    return None


# resolved once at import
PROJECT_ROOT: Optional[Path] = find_project_root()


class StatisticsConfig(BaseModel):
    """Odds-bucket statistics"""

    # pseudo-count pulling each bucket toward the global prior
    shrinkage_k: float = Field(default=10.0, ge=0.0)
    # shrunk variance never drops below this fraction of the prior variance
    variance_floor_frac: float = Field(default=0.1, ge=0.0)
    # [prev, current, next]
    smoothing_weights: tuple[float, float, float] = (0.25, 0.5, 0.25)

    @field_validator("smoothing_weights")
    @classmethod
    def _weights_sum_to_one(cls, v: tuple[float, float, float]) -> tuple[float, float, float]:
        if abs(sum(v) - 1.0) > 1e-9:
            raise ValueError(f"smoothing_weights must sum to 1.0 (got {sum(v)})")
        return v


class CalibrationConfig(BaseModel):
    """
    Power-law tier calibration

    tail probability of tier i is proportional to 1 / m_i ** alpha, scaled so
    that the expected payout per unit stake equals 1 - house_edge.
    """

    house_edge: float = Field(default=0.20, gt=0.0, lt=1.0)
    alpha: float = Field(default=1.0, gt=0.0)


class TierConfig(BaseModel):
    """Payout multiplier tiers"""

    default_multipliers: list[float] = Field(default_factory=lambda: [0.5, 2.0, 3.0, 5.0])
    min_multiplier: float = Field(default=0.5, gt=0.0)
    max_multiplier: float = Field(default=15.0, gt=0.0)
    min_gap: float = Field(default=0.3, ge=0.0)
    max_tiers: int = Field(default=10, ge=1)


class GameConfig(BaseModel):
    """Salary cap, stake limits and bankroll"""

    salary_min: int = 20000
    salary_max: int = 50000
    stake_min: float = Field(default=5.0, gt=0.0)
    stake_max: float = Field(default=1000.0, gt=0.0)
    initial_bankroll: float = Field(default=10000.0, ge=0.0)


class DataConfig(BaseModel):
    """Entry table handling"""

    # race days with more scratches than this are not offered
    max_scratches_per_day: int = Field(default=10, ge=0)


class Config(BaseModel):
    """Top-level settings"""

    statistics: StatisticsConfig = Field(default_factory=StatisticsConfig)
    calibration: CalibrationConfig = Field(default_factory=CalibrationConfig)
    tiers: TierConfig = Field(default_factory=TierConfig)
    game: GameConfig = Field(default_factory=GameConfig)
    data: DataConfig = Field(default_factory=DataConfig)


def _read_yaml(path: Path) -> Config:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return Config.model_validate(data or {})


def load_config(config_path: Optional[Path | str] = None) -> Config:
    """
    Load settings

    Args:
        config_path: explicit settings file (None to search)

    Search order:
        1. the given path
        2. RACECAP_CONFIG_PATH
        3. PROJECT_ROOT / config / config.yaml
        4. defaults
    """
    if config_path:
        path = Path(config_path)
        if path.exists():
            return _read_yaml(path)

    env_config = os.environ.get("RACECAP_CONFIG_PATH")
    if env_config:
        path = Path(env_config)
        if path.exists():
            return _read_yaml(path)

    if PROJECT_ROOT:
        path = PROJECT_ROOT / "config" / "config.yaml"
        if path.exists():
            return _read_yaml(path)

    return Config()


_config: Optional[Config] = None


def get_config() -> Config:
    """Settings (lazy load)"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached settings (for tests)"""
    global _config
    _config = None
