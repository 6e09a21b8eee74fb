"""
Historical race entries

One row per horse per race: connections, morning-line odds, finish, realized
fantasy points, salary and scratch flag. Loading the source workbook is the
caller's job; this module only normalizes an already-loaded table.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Optional, Sequence

import pandas as pd  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoricalEntry:
    date: str  # YYYY-MM-DD
    race: int
    horse: str
    jockey: str = ""
    trainer: str = ""
    sire1: str = ""
    sire2: Optional[str] = None
    odds: float = 0.0  # decimal morning line
    finish: int = 0  # 0 = no finish recorded
    points: float = 0.0
    salary: float = 0.0
    post_position: int = 0
    ml_odds: str = ""  # raw morning line text, e.g. "9/5"
    is_scratched: bool = False

    @property
    def horse_id(self) -> str:
        return horse_id(self.date, self.race, self.horse)

    @property
    def is_valid(self) -> bool:
        """Counts toward statistics: ran and has a finish."""
        return (not self.is_scratched) and self.finish > 0


def horse_id(date: str, race: int, horse: str) -> str:
    return f"{date}-{race}-{horse}"


class Role(str, enum.Enum):
    JOCKEY = "jockey"
    TRAINER = "trainer"
    SIRE = "sire"

    def matches(self, entry: HistoricalEntry, name: str) -> bool:
        return matches(entry, self, name)


def matches(entry: HistoricalEntry, role: Role | str, name: str) -> bool:
    """Whether `name` fills `role` on this entry (sire matches either slot)."""
    role = Role(role)
    if role is Role.JOCKEY:
        return entry.jockey == name
    if role is Role.TRAINER:
        return entry.trainer == name
    return entry.sire1 == name or (entry.sire2 is not None and entry.sire2 == name)


def role_names(entry: HistoricalEntry, role: Role | str) -> list[str]:
    """Distinct non-empty names filling `role` on this entry."""
    role = Role(role)
    if role is Role.JOCKEY:
        names = [entry.jockey]
    elif role is Role.TRAINER:
        names = [entry.trainer]
    else:
        names = [entry.sire1, entry.sire2 or ""]
    out: list[str] = []
    for n in names:
        if n and n not in out:
            out.append(n)
    return out


# Column headers of the source "Horses" sheet -> field names
SHEET_COLUMNS: dict[str, str] = {
    "Date": "date",
    "Race": "race",
    "Horse": "horse",
    "PP": "post_position",
    "Jockey": "jockey",
    "Trainer": "trainer",
    "Sire 1": "sire1",
    "Sire 2": "sire2",
    "OG M/L": "ml_odds",
    "OG M/L Dec": "odds",
    "New Sal.": "salary",
    "Finish": "finish",
    "Total Points": "points",
}

REQUIRED_COLUMNS = ("date", "race", "horse", "odds")


def _text(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, float) and math.isnan(v):
        return ""
    return str(v).strip()


def entries_from_frame(df: pd.DataFrame) -> list[HistoricalEntry]:
    """
    DataFrame -> entries

    Accepts snake_case field names or the original sheet headers. Missing
    numeric values become 0. Without an is_scratched column a row counts as
    scratched when its horse name contains "SCR" or it has no finish.
    """
    df = df.rename(columns={k: v for k, v in SHEET_COLUMNS.items() if k in df.columns})
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"entries missing required columns: {missing}")

    df = df.copy()
    df["date"] = df["date"].astype(str).str.slice(0, 10)
    for col in ("race", "finish", "post_position"):
        if col not in df.columns:
            df[col] = 0
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0).astype(int)
    for col in ("odds", "points", "salary"):
        if col not in df.columns:
            df[col] = 0.0
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0).astype(float)
    if "is_scratched" not in df.columns:
        # the sheet marks scratches with "SCR" in the horse name or by leaving Finish empty
        scr = df["horse"].astype(str).str.contains("SCR", regex=False, na=False)
        df["is_scratched"] = scr | (df["finish"] <= 0)
    df["is_scratched"] = df["is_scratched"].fillna(False).astype(bool)

    n_negative = int((df["odds"] < 0).sum())
    if n_negative:
        logger.warning(f"{n_negative} entries have negative odds; they fall into the top bucket")

    out: list[HistoricalEntry] = []
    for row in df.to_dict(orient="records"):
        sire2 = _text(row.get("sire2"))
        out.append(
            HistoricalEntry(
                date=row["date"],
                race=int(row["race"]),
                horse=_text(row.get("horse")),
                jockey=_text(row.get("jockey")),
                trainer=_text(row.get("trainer")),
                sire1=_text(row.get("sire1")),
                sire2=sire2 or None,
                odds=float(row["odds"]),
                finish=int(row["finish"]),
                points=float(row["points"]),
                salary=float(row["salary"]),
                post_position=int(row["post_position"]),
                ml_odds=_text(row.get("ml_odds")),
                is_scratched=bool(row["is_scratched"]),
            )
        )
    return out


def entries_to_frame(entries: Iterable[HistoricalEntry]) -> pd.DataFrame:
    rows = [asdict(e) for e in entries]
    if not rows:
        return pd.DataFrame(columns=list(HistoricalEntry.__dataclass_fields__))
    return pd.DataFrame(rows)


def entries_for_date(entries: Iterable[HistoricalEntry], date: str) -> list[HistoricalEntry]:
    """Entries of one race day, ordered by race then post position."""
    day = [e for e in entries if e.date == date]
    return sorted(day, key=lambda e: (e.race, e.post_position))


@dataclass(frozen=True)
class RaceDay:
    date: str
    race_count: int
    horse_count: int
    scratch_count: int


def available_dates(
    entries: Iterable[HistoricalEntry],
    *,
    max_scratches: int = 10,
) -> list[RaceDay]:
    """
    Race days that can be offered: at least one runner and no more than
    `max_scratches` scratches. Newest first. A horse without a finish counts
    as a scratch.
    """
    df = entries_to_frame(entries)
    if df.empty:
        return []
    df["is_scratched"] = df["is_scratched"].astype(bool) | (df["finish"] <= 0)
    g = df.groupby("date")
    summary = pd.DataFrame(
        {
            "total": g.size(),
            "scratches": g["is_scratched"].sum(),
            "races": g["race"].nunique(),
        }
    )
    summary = summary[
        ((summary["total"] - summary["scratches"]) > 0) & (summary["scratches"] <= int(max_scratches))
    ]
    summary = summary.sort_index(ascending=False)
    return [
        RaceDay(
            date=str(d),
            race_count=int(r["races"]),
            horse_count=int(r["total"]),
            scratch_count=int(r["scratches"]),
        )
        for d, r in summary.iterrows()
    ]


def actual_points(name: str, role: Role | str, day_entries: Sequence[HistoricalEntry]) -> float:
    """Realized points of a connection over the horses that ran and finished."""
    return float(
        sum(e.points for e in day_entries if e.is_valid and matches(e, role, name))
    )
