"""
Shared pytest setup

Puts src/ on sys.path so tests run without `pip install -e .`.
"""
import sys
from pathlib import Path

import pytest

project_root = Path(__file__).resolve().parents[1]
src_path = project_root / "src"

if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


def make_entry(**kwargs):
    from racecap.data.entries import HistoricalEntry

    base = {
        "date": "2025-12-12",
        "race": 1,
        "horse": "Horse",
        "jockey": "",
        "trainer": "",
        "sire1": "",
        "sire2": None,
        "odds": 1.0,
        "finish": 1,
        "points": 0.0,
        "salary": 0.0,
    }
    base.update(kwargs)
    return HistoricalEntry(**base)


@pytest.fixture
def entry_factory():
    return make_entry


@pytest.fixture
def history():
    """Three race days spread over several buckets."""
    rows = []
    odds_cycle = [0.5, 1.0, 1.8, 3.0, 5.0, 8.0, 12.0, 25.0, 60.0]
    points_cycle = [30.0, 22.0, 18.0, 12.0, 8.0, 5.0, 3.0, 1.0, 0.0]
    for d, date in enumerate(["2025-12-10", "2025-12-11", "2025-12-12"]):
        for race in range(1, 4):
            for i, (o, pts) in enumerate(zip(odds_cycle, points_cycle)):
                rows.append(
                    make_entry(
                        date=date,
                        race=race,
                        horse=f"H{d}{race}{i}",
                        jockey=f"J{i % 4}",
                        trainer=f"T{i % 3}",
                        sire1=f"S{i % 5}",
                        sire2=f"S{(i + 1) % 5}" if i % 2 else None,
                        odds=o,
                        finish=i + 1,
                        points=pts + race,
                        salary=1000.0,
                        post_position=i + 1,
                    )
                )
    return rows
