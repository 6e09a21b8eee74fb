import math

import pytest

from racecap.data.entries import Role, matches
from racecap.stats.bucket_stats import BucketStatsTable, GlobalPrior, build_bucket_statistics
from racecap.stats.entity import (
    connection_history,
    connection_id,
    connections_for_day,
    stats_for_connection,
    stats_for_horse,
)


@pytest.fixture
def day(entry_factory):
    return [
        entry_factory(race=1, horse="Alpha", jockey="J Smith", trainer="T Brown",
                      sire1="Sire X", sire2="Sire X", odds=1.0, points=25.0),
        entry_factory(race=2, horse="Bravo", jockey="J Smith", trainer="T Green",
                      sire1="Sire Y", sire2="Sire X", odds=5.0, points=4.0, finish=5),
        entry_factory(race=3, horse="Charlie", jockey="J Smith", trainer="T Brown",
                      sire1="Sire X", odds=10.0, points=0.0, is_scratched=True),
    ]


def test_role_matches(day) -> None:
    alpha, bravo, _ = day
    assert matches(alpha, Role.JOCKEY, "J Smith")
    assert not matches(alpha, Role.TRAINER, "J Smith")
    assert matches(bravo, "sire", "Sire X")
    assert Role.SIRE.matches(bravo, "Sire Y")
    assert not Role.SIRE.matches(alpha, "Sire Y")


def test_stats_for_horse_uses_smoothed_bucket(history, day) -> None:
    table = build_bucket_statistics(history)
    s = stats_for_horse(day[0], table)
    assert s.mean == table["EVEN (1/1)"].smoothed_mean
    assert s.variance == table["EVEN (1/1)"].smoothed_variance
    raw = stats_for_horse(day[0], table, raw=True)
    assert raw.mean == table["EVEN (1/1)"].shrunk_mean


def test_stats_for_horse_missing_bucket_falls_back_to_prior(day) -> None:
    table = BucketStatsTable(stats={}, prior=GlobalPrior(mean=7.0, variance=3.0, n=40))
    s = stats_for_horse(day[0], table)
    assert (s.mean, s.variance) == (7.0, 3.0)


def test_jockey_sums_non_scratched_horses(history, day) -> None:
    table = build_bucket_statistics(history)
    c = stats_for_connection("J Smith", Role.JOCKEY, day, table)
    even = table["EVEN (1/1)"]
    five = table["9/2 to 5/1"]
    assert c.horse_ids == ("2025-12-12-1-Alpha", "2025-12-12-2-Bravo")
    assert c.mu == pytest.approx(even.smoothed_mean + five.smoothed_mean)
    assert c.variance == pytest.approx(even.smoothed_variance + five.smoothed_variance)
    assert c.sigma == pytest.approx(math.sqrt(c.variance))
    assert c.date == "2025-12-12"
    assert c.id == "jockey-j-smith"


def test_sire_in_both_slots_counts_once(history, day) -> None:
    table = build_bucket_statistics(history)
    c = stats_for_connection("Sire X", "sire", day, table)
    assert len(c.horse_ids) == 2
    even = table["EVEN (1/1)"]
    five = table["9/2 to 5/1"]
    assert c.mu == pytest.approx(even.smoothed_mean + five.smoothed_mean)


def test_unknown_connection_is_empty(history, day) -> None:
    table = build_bucket_statistics(history)
    c = stats_for_connection("Nobody", Role.TRAINER, day, table)
    assert c.mu == 0.0 and c.variance == 0.0 and c.horse_ids == ()


def test_connections_for_day(history, day) -> None:
    table = build_bucket_statistics(history)
    sal = {connection_id(Role.JOCKEY, "J Smith"): 12000.0}
    conns = connections_for_day(day, table, salaries=sal)
    ids = [c.id for c in conns]
    assert ids == [
        "jockey-j-smith",
        "trainer-t-brown",
        "trainer-t-green",
        "sire-sire-x",
        "sire-sire-y",
    ]
    assert conns[0].salary == 12000.0
    assert conns[1].salary == 0.0


def test_connection_history_order(history) -> None:
    table = build_bucket_statistics(history)
    rows = connection_history("J0", Role.JOCKEY, history, table)
    assert rows
    dates = [r.date for r in rows]
    assert dates == sorted(dates, reverse=True)
    first_day = [r.race for r in rows if r.date == dates[0]]
    assert first_day == sorted(first_day)
    by_horse = {(e.date, e.horse): e for e in history}
    for r in rows:
        assert r.expected_points == stats_for_horse(by_horse[(r.date, r.horse)], table).mean
        assert r.actual_points == by_horse[(r.date, r.horse)].points


def test_horse_without_finish_is_skipped(history, entry_factory) -> None:
    table = build_bucket_statistics(history)
    day = [
        entry_factory(race=1, horse="Ran", jockey="J", trainer="T Ran", odds=1.0, finish=1, points=20.0),
        entry_factory(race=2, horse="NoFinish", jockey="J", trainer="T Gone", odds=5.0, finish=0, points=7.0),
    ]
    c = stats_for_connection("J", Role.JOCKEY, day, table)
    assert c.horse_ids == ("2025-12-12-1-Ran",)
    assert c.mu == pytest.approx(table["EVEN (1/1)"].smoothed_mean)
    assert c.variance == pytest.approx(table["EVEN (1/1)"].smoothed_variance)

    ids = [x.id for x in connections_for_day(day, table)]
    assert "trainer-t-gone" not in ids
    assert [r.horse for r in connection_history("J", Role.JOCKEY, day, table)] == ["Ran"]


def test_connection_finish_summary(history, day) -> None:
    table = build_bucket_statistics(history)
    c = stats_for_connection("J Smith", Role.JOCKEY, day, table)
    # Alpha (1.0, won) and Bravo (5.0, fifth); Charlie scratched
    assert c.apps == 2
    assert c.avg_odds == pytest.approx(3.0)
    assert (c.wins, c.places, c.shows) == (1, 0, 0)
    assert c.win_pct == pytest.approx(50.0)
    assert c.itm_pct == pytest.approx(50.0)
    d = c.to_dict()
    assert d["avg_odds"] == pytest.approx(3.0)
    assert d["apps"] == 2

    empty = stats_for_connection("Nobody", Role.JOCKEY, day, table)
    assert empty.avg_odds == 0.0 and empty.win_pct == 0.0
