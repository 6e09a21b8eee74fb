"""Odds buckets and the per-bucket / per-connection point statistics."""

from .odds_bucket import AE_BUCKETS, ODDS_BUCKETS, OddsBucket, find_ae_bucket, find_bucket
from .bucket_stats import (
    BucketStatistics,
    BucketStatsTable,
    GlobalPrior,
    build_bucket_statistics,
    build_prior,
)
from .entity import ConnectionDayStats, HorseStats, Role, stats_for_connection, stats_for_horse

__all__ = [
    "AE_BUCKETS",
    "ODDS_BUCKETS",
    "OddsBucket",
    "find_ae_bucket",
    "find_bucket",
    "BucketStatistics",
    "BucketStatsTable",
    "GlobalPrior",
    "build_bucket_statistics",
    "build_prior",
    "ConnectionDayStats",
    "HorseStats",
    "Role",
    "stats_for_connection",
    "stats_for_horse",
]
