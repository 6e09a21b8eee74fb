import logging
import math
from statistics import NormalDist

import pytest

from racecap.betting.targets import (
    calculate_expected_return,
    calculate_targets,
    evaluate_outcome,
    exclusive_probabilities,
    expected_payout,
    inverse_normal_cdf,
    payout_for,
    tail_probabilities,
)
from racecap.config import CalibrationConfig


@pytest.mark.parametrize("p", [1e-12, 1e-6, 0.001, 0.02, 0.02425, 0.1, 0.3, 0.5, 0.7, 0.9, 0.975, 0.999, 1 - 1e-9])
def test_inverse_normal_cdf_matches_reference(p: float) -> None:
    assert inverse_normal_cdf(p) == pytest.approx(NormalDist().inv_cdf(p), rel=1e-9, abs=1e-9)


def test_inverse_normal_cdf_without_refinement_is_close() -> None:
    for p in (0.01, 0.2, 0.5, 0.8, 0.99):
        assert inverse_normal_cdf(p, refine=False) == pytest.approx(NormalDist().inv_cdf(p), abs=1e-7)


def test_inverse_normal_cdf_bounds() -> None:
    assert inverse_normal_cdf(0.0) == float("-inf")
    assert inverse_normal_cdf(1.0) == float("inf")
    assert inverse_normal_cdf(-0.5) == float("-inf")
    assert math.isnan(inverse_normal_cdf(float("nan")))
    assert inverse_normal_cdf(0.5) == pytest.approx(0.0, abs=1e-12)


def test_tail_probabilities_power_law() -> None:
    tails = tail_probabilities([0.5, 2.0, 3.0, 5.0])
    c = 0.8 / (0.5 / 0.5 + 1.5 / 2.0 + 1.0 / 3.0 + 2.0 / 5.0)
    assert tails == pytest.approx([c / 0.5, c / 2.0, c / 3.0, c / 5.0])
    assert tail_probabilities([]) == []


@pytest.mark.parametrize(
    "multipliers",
    [[0.5, 2.0, 3.0, 5.0], [1.0, 10.0], [2.0], [0.5, 0.8, 1.1, 4.0, 9.0, 15.0]],
)
def test_expected_return_is_one_minus_house_edge(multipliers) -> None:
    tiers = calculate_targets(100.0, 20.0, 10.0, multipliers)
    assert calculate_expected_return(tiers) == pytest.approx(0.80, abs=1e-10)
    assert sum(exclusive_probabilities(tiers)) == pytest.approx(tiers[0].tail_probability)


def test_expected_return_follows_house_edge_and_alpha() -> None:
    cfg = CalibrationConfig(house_edge=0.05, alpha=1.7)
    tiers = calculate_targets(50.0, 10.0, 1.0, [1.0, 3.0, 8.0], cfg)
    assert calculate_expected_return(tiers) == pytest.approx(0.95, abs=1e-10)
    # steeper tail for higher alpha
    assert tiers[2].tail_probability / tiers[0].tail_probability == pytest.approx(8.0**-1.7)


def test_expected_payout_in_stake_units() -> None:
    tiers = calculate_targets(100.0, 20.0, 10.0, [0.5, 2.0, 3.0, 5.0])
    assert expected_payout(tiers) == pytest.approx(8.0, abs=1e-9)
    assert [t.payout for t in tiers] == [5.0, 20.0, 30.0, 50.0]


def test_targets_monotonic_and_sorted() -> None:
    tiers = calculate_targets(80.0, 15.0, 20.0, [5.0, 0.5, 3.0, 2.0])
    assert [t.multiplier for t in tiers] == [0.5, 2.0, 3.0, 5.0]
    tails = [t.tail_probability for t in tiers]
    pts = [t.target_points for t in tiers]
    assert all(a > b for a, b in zip(tails, tails[1:]))
    assert all(a < b for a, b in zip(pts, pts[1:]))
    for t in tiers:
        assert t.target_points == pytest.approx(80.0 + t.z_value * 15.0)
    assert tiers[0].label == "0.5x"


def test_zero_sigma_collapses_to_mu() -> None:
    tiers = calculate_targets(42.0, 0.0, 10.0, [0.5, 2.0, 5.0])
    assert [t.target_points for t in tiers] == [42.0, 42.0, 42.0]
    assert evaluate_outcome(42.0, tiers).multiplier == 5.0


def test_empty_and_invalid_multipliers() -> None:
    assert calculate_targets(100.0, 20.0, 10.0, []) == []
    tiers = calculate_targets(100.0, 20.0, 10.0, [0.0, -1.0, float("nan"), 2.0])
    assert [t.multiplier for t in tiers] == [2.0]
    assert calculate_expected_return([]) == 0.0


def test_tail_at_or_above_one_is_always_met() -> None:
    # lone 0.5x tier: c = 0.8, tail = 1.6
    tiers = calculate_targets(100.0, 20.0, 10.0, [0.5], CalibrationConfig(house_edge=0.2))
    assert tiers[0].tail_probability >= 1.0
    assert tiers[0].z_value == float("-inf")
    assert tiers[0].target_points == float("-inf")
    assert evaluate_outcome(0.0, tiers) is tiers[0]


def test_evaluate_outcome_boundaries() -> None:
    tiers = calculate_targets(100.0, 20.0, 10.0, [0.5, 2.0, 3.0, 5.0])
    top = tiers[-1]
    assert evaluate_outcome(top.target_points, tiers) is top
    assert evaluate_outcome(math.nextafter(tiers[1].target_points, 0.0), tiers) is tiers[0]
    assert evaluate_outcome(tiers[0].target_points - 1.0, tiers) is None
    assert payout_for(tiers[0].target_points - 1.0, tiers) == 0.0
    assert payout_for(1e9, tiers) == 50.0


def test_always_paid_tier_is_logged(caplog) -> None:
    with caplog.at_level(logging.DEBUG, logger="racecap.betting.targets"):
        calculate_targets(100.0, 20.0, 10.0, [0.5])
    assert "always paid" in caplog.text
    caplog.clear()
    with caplog.at_level(logging.DEBUG, logger="racecap.betting.targets"):
        calculate_targets(100.0, 20.0, 10.0, [0.5, 2.0, 3.0, 5.0])
    assert "always paid" not in caplog.text
