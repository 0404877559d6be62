"""Tests for duty curves and solver sweeps."""

import numpy as np
import pytest

from stampduty.duty import calc_duty
from stampduty.errors import InvalidInput
from stampduty.params import BuyerFlags, FinancingInput
from stampduty.sensitivity import duty_curve, format_sweep, frange, price_grid, sweep


class TestDutyCurve:
    def test_matches_point_queries(self):
        prices = [300_000, 800_000, 1_000_000]
        curve = duty_curve("NSW", prices)
        assert curve.tolist() == [calc_duty("NSW", p) for p in prices]

    def test_integer_array(self):
        curve = duty_curve("VIC", price_grid(100_000, 1_000_000, 10))
        assert curve.dtype == np.int64
        assert len(curve) == 10

    def test_flags_passed_through(self):
        flags = BuyerFlags(is_first_home_buyer=True)
        assert duty_curve("NSW", [750_000], flags)[0] == 0


class TestPriceGrid:
    def test_whole_dollars_inclusive(self):
        grid = price_grid(100_000, 200_000, 5)
        assert grid[0] == 100_000
        assert grid[-1] == 200_000
        assert np.all(grid == np.round(grid))


class TestSweep:
    def test_cash_sweep_is_monotonic(self):
        results = sweep(FinancingInput(), "cash_on_hand", [50_000, 100_000, 150_000, 200_000])
        prices = [r.max_price for r in results]
        assert prices == sorted(prices)
        assert all(r.feasible for r in results)

    def test_param_value_recorded(self):
        results = sweep(FinancingInput(), "target_leverage", [0.8, 0.9])
        assert [r.param_value for r in results] == [0.8, 0.9]
        assert results[0].premium == 0

    def test_infeasible_values(self):
        results = sweep(FinancingInput(), "cash_on_hand", [0, 100_000])
        assert not results[0].feasible
        assert results[0].max_price == 0

    def test_unknown_field(self):
        with pytest.raises(InvalidInput, match="no field"):
            sweep(FinancingInput(), "fees", [1])

    def test_format(self):
        results = sweep(FinancingInput(), "cash_on_hand", [0, 100_000])
        text = format_sweep("cash_on_hand", results)
        assert "Sensitivity: cash_on_hand" in text
        assert "infeasible" in text
        assert "100,000" in text


class TestFrange:
    def test_inclusive(self):
        assert frange(0.80, 0.90, 0.05) == [0.8, 0.85, 0.9]

    def test_whole_numbers(self):
        assert frange(50_000, 150_000, 50_000) == [50_000, 100_000, 150_000]

    def test_step_must_be_positive(self):
        with pytest.raises(ValueError):
            frange(1, 2, 0)
