#!/usr/bin/env python3
"""
Unit tests for the upgrade cost curve and purchases.
"""

import logging
from dataclasses import replace

import pytest

from farm_model import (
    Family,
    Farm,
    GameState,
    InsufficientFundsError,
    MaxLevelError,
    Nutrition,
)
from farm_upgrades import FALLBACK_COST, Upgrade, UpgradeCost, buy, current_level, next_cost


# Configure logging for tests
logging.basicConfig(level=logging.INFO)


@pytest.fixture
def state():
    families = [Family(name, Nutrition(1, 1, 1, 1)) for name in ("A", "B", "C", "D")]
    return GameState.new(families, money=5000)


class TestNextCost:

    def test_first_level(self):
        assert next_cost(Farm(), Upgrade.IRRIGATION) == UpgradeCost(1, 500)

    def test_level_two_to_three(self):
        assert next_cost(Farm(irrigation_level=2), Upgrade.IRRIGATION) == UpgradeCost(3, 2000)
        assert next_cost(Farm(yield_level=2), Upgrade.YIELD) == UpgradeCost(3, 2000)

    def test_maxed_has_no_cost(self):
        assert next_cost(Farm(yield_level=3), Upgrade.YIELD) is None

    def test_short_curve_falls_back(self):
        cost = next_cost(Farm(irrigation_level=1), Upgrade.IRRIGATION, curve=(500,))
        assert cost == UpgradeCost(2, FALLBACK_COST)

    def test_tracks_are_independent(self):
        farm = Farm(irrigation_level=3, yield_level=0)
        assert current_level(farm, Upgrade.IRRIGATION) == 3
        assert current_level(farm, Upgrade.YIELD) == 0
        assert next_cost(farm, Upgrade.YIELD) == UpgradeCost(1, 500)


class TestBuy:

    def test_buy_levels_up_and_pays(self, state):
        after = buy(state, Upgrade.YIELD)
        assert after.farm == Farm(irrigation_level=0, yield_level=1)
        assert after.money == 4500
        assert state.money == 5000, "Original state must not change"

    def test_buy_to_max_level(self, state):
        state = replace(state, farm=Farm(irrigation_level=2))
        after = buy(state, Upgrade.IRRIGATION)
        assert after.farm.irrigation_level == 3
        assert after.money == 3000

    def test_buy_at_max_level_fails(self, state):
        state = replace(state, farm=Farm(irrigation_level=3))
        with pytest.raises(MaxLevelError, match="Already at max level"):
            buy(state, Upgrade.IRRIGATION)

    def test_not_enough_money(self, state):
        state = replace(state, money=499)
        with pytest.raises(InsufficientFundsError, match="Not enough money"):
            buy(state, Upgrade.IRRIGATION)
        assert state.farm == Farm()

    def test_exact_money_is_enough(self, state):
        state = replace(state, money=500)
        assert buy(state, Upgrade.IRRIGATION).money == 0

    def test_parse(self):
        assert Upgrade.parse("Irrigation") is Upgrade.IRRIGATION
        assert Upgrade.parse("yield") is Upgrade.YIELD
        assert Upgrade.parse("tractor") is None


if __name__ == '__main__':
    # Run with pytest
    import sys
    sys.exit(pytest.main([__file__, '-v']))
