#!/usr/bin/env python3
"""
Print the odds-bucket statistics table for an entries CSV.

Usage:
    python scripts/bucket_table.py --entries data/AQU_horses.csv
    python scripts/bucket_table.py --entries data/AQU_horses.csv --out bucket_stats.json
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _ensure_src_on_path() -> None:
    src = _repo_root() / "src"
    sys.path.insert(0, str(src))


def main() -> int:
    p = argparse.ArgumentParser()
    p.add_argument("--entries", required=True, help="CSV of historical entries (one row per horse)")
    p.add_argument("--config", default=None, help="config.yaml path (optional)")
    p.add_argument("--out", default=None, help="Output JSON path (optional)")
    p.add_argument("--dates", action="store_true", help="Also list playable race days")
    args = p.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    _ensure_src_on_path()
    import pandas as pd  # type: ignore[import-untyped]

    from racecap.config import load_config  # type: ignore[import-not-found]
    from racecap.data.entries import available_dates, entries_from_frame  # type: ignore[import-not-found]
    from racecap.stats.bucket_stats import build_bucket_statistics  # type: ignore[import-not-found]

    path = Path(args.entries)
    if not path.exists():
        raise SystemExit(f"entries not found: {path}")

    cfg = load_config(args.config)
    entries = entries_from_frame(pd.read_csv(path))
    table = build_bucket_statistics(entries, cfg.statistics)

    cols = ["label", "n", "raw_mean", "shrunk_mean", "smoothed_mean", "smoothed_variance", "win_pct", "itm_pct"]
    with pd.option_context("display.width", 160, "display.max_columns", 20):
        print(table.to_frame()[cols].to_string(index=False, float_format=lambda x: f"{x:.3f}"))
    print(f"prior: mean={table.prior.mean:.3f} variance={table.prior.variance:.3f} n={table.prior.n}")

    if args.dates:
        days = available_dates(entries, max_scratches=cfg.data.max_scratches_per_day)
        for d in days:
            print(f"{d.date}  races={d.race_count}  horses={d.horse_count}  scratches={d.scratch_count}")

    if args.out:
        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(table.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
