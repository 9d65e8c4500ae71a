#!/usr/bin/env python3
"""
Unit tests for player actions and the end-of-day transition.
"""

import logging
from dataclasses import replace

import pytest

from farm_market import Market
from farm_model import (
    ZERO,
    CropTile,
    Family,
    Farm,
    GameState,
    InsufficientStockError,
    InvalidTargetError,
    Nutrition,
    Produce,
    Storage,
    TileOccupiedError,
)
from farm_rules import (
    GAME_OVER_REASON,
    GameOver,
    assign_to_family,
    end_of_day,
    harvest_at,
    plant_at,
    sell_produce,
    unsatisfied_families,
)


# Configure logging for tests
logging.basicConfig(level=logging.INFO)

NEED = Nutrition(100, 10, 10, 10)


@pytest.fixture
def fed_state():
    """Every family has two days of food stocked."""
    families = [Family(name, NEED, stockpile=NEED * 2) for name in ("Ali", "Bala", "Chen", "Devi")]
    return GameState.new(families, money=100)


@pytest.fixture
def market():
    return Market.initial(seed=5)


class TestPlantAndHarvest:

    def test_plant(self, fed_state):
        state = plant_at(fed_state, 3, Produce.BEANS)
        assert state.grid[3] == CropTile(Produce.BEANS, 0)
        assert fed_state.grid[3] == CropTile()

    def test_plant_occupied_tile_fails(self, fed_state):
        state = plant_at(fed_state, 0, Produce.RICE)
        with pytest.raises(TileOccupiedError):
            plant_at(state, 0, Produce.BEANS)

    @pytest.mark.parametrize("index", [-1, 12])
    def test_bad_tile_index(self, fed_state, index):
        with pytest.raises(InvalidTargetError):
            plant_at(fed_state, index, Produce.RICE)

    def test_harvest_adds_yield_to_storage(self, fed_state):
        state = fed_state.with_tile(5, CropTile(Produce.VEGETABLES, 2))
        state = replace(state, farm=Farm(yield_level=2))
        state, produce, units = harvest_at(state, 5)
        assert produce is Produce.VEGETABLES
        assert units == 3
        assert state.storage.amount_of(Produce.VEGETABLES) == 3
        assert state.grid[5] == CropTile()

    def test_harvest_not_ready_is_unchanged(self, fed_state):
        state = plant_at(fed_state, 0, Produce.RICE)
        after, produce, units = harvest_at(state, 0)
        assert (produce, units) == (None, 0)
        assert after == state

    def test_harvest_empty_tile_is_unchanged(self, fed_state):
        assert harvest_at(fed_state, 0) == (fed_state, None, 0)


class TestAssignAndSell:
    """Storage withdrawals either fully happen or not at all."""

    @pytest.fixture
    def stocked(self, fed_state):
        return replace(fed_state, storage=Storage({Produce.RICE: 5}))

    def test_assign_more_than_stock_fails(self, stocked):
        with pytest.raises(InsufficientStockError):
            assign_to_family(stocked, 0, Produce.RICE, 6)
        assert stocked.storage.amount_of(Produce.RICE) == 5
        assert stocked.families[0].assigned == {}

    def test_assign_all_stock(self, stocked):
        state = assign_to_family(stocked, 1, Produce.RICE, 5)
        assert state.storage.amount_of(Produce.RICE) == 0
        bala = state.families[1]
        assert bala.assigned == {Produce.RICE: 5}
        assert bala.stockpile == NEED * 2 + Produce.RICE.nutrition_per_unit * 5

    def test_assign_bad_family_or_quantity(self, stocked):
        with pytest.raises(InvalidTargetError):
            assign_to_family(stocked, 4, Produce.RICE, 1)
        with pytest.raises(InvalidTargetError):
            assign_to_family(stocked, 0, Produce.RICE, 0)

    def test_sell_more_than_stock_fails(self, stocked, market):
        with pytest.raises(InsufficientStockError):
            sell_produce(stocked, market, Produce.RICE, 6)
        assert stocked.storage.amount_of(Produce.RICE) == 5
        assert stocked.money == 100

    def test_sell_all_stock(self, stocked, market):
        state, revenue = sell_produce(stocked, market, Produce.RICE, 5)
        assert revenue == 250
        assert state.money == 350
        assert state.storage.amount_of(Produce.RICE) == 0
        assert market.prices[Produce.RICE] == 50, "Selling must not move the price"

    def test_sell_uses_current_price(self, stocked, market):
        tomorrow = market.next_day()
        _, revenue = sell_produce(stocked, tomorrow, Produce.RICE, 2)
        assert revenue == tomorrow.prices[Produce.RICE] * 2


class TestEndOfDay:

    def test_unsatisfied_family_ends_the_game(self, fed_state, market):
        hungry = Family("Devi", NEED, stockpile=Nutrition(100, 10, 10, 9))
        state = fed_state.with_family(3, hungry)
        snapshot = replace(state)
        result = end_of_day(state, market)
        assert isinstance(result, GameOver)
        assert result.reason == GAME_OVER_REASON
        assert result.unsatisfied == ("Devi",)
        assert state == snapshot
        assert state.day == 1

    def test_advances_one_day(self, fed_state, market):
        state = plant_at(plant_at(fed_state, 0, Produce.RICE), 7, Produce.VEGETABLES)
        state = replace(state, farm=Farm(irrigation_level=2))
        state = assign_to_family(replace(state, storage=Storage({Produce.BEANS: 1})), 0, Produce.BEANS, 1)

        next_state, next_market = end_of_day(state, market)

        assert next_state.day == 2
        assert all(f.assigned == {} for f in next_state.families)
        assert next_state.grid[0] == CropTile(Produce.RICE, 3)
        assert next_state.grid[7] == CropTile(Produce.VEGETABLES, 3)
        assert all(t == CropTile() for i, t in enumerate(next_state.grid) if i not in (0, 7))
        assert next_state.money == state.money
        assert next_state.farm == state.farm
        assert next_state.storage == state.storage
        assert next_market.yesterday == market.prices

    def test_settlement_consumes_need_once(self, fed_state, market):
        next_state, _ = end_of_day(fed_state, market)
        assert all(f.stockpile == NEED for f in next_state.families)

    def test_delivery_is_counted_in_stockpile_and_today(self, fed_state, market):
        state = replace(fed_state, storage=Storage({Produce.VEGETABLES: 1}))
        state = assign_to_family(state, 2, Produce.VEGETABLES, 1)
        next_state, _ = end_of_day(state, market)
        veg = Produce.VEGETABLES.nutrition_per_unit
        assert next_state.families[2].stockpile == NEED * 2 + veg + veg - NEED

    def test_delivery_alone_can_satisfy(self, fed_state, market):
        beans = Produce.BEANS.nutrition_per_unit
        state = fed_state.with_family(0, Family("Ali", beans, stockpile=ZERO))
        state = replace(state, storage=Storage({Produce.BEANS: 1}))
        assert unsatisfied_families(state)[0].name == "Ali"
        state = assign_to_family(state, 0, Produce.BEANS, 1)
        assert unsatisfied_families(state) == []
        assert not isinstance(end_of_day(state, market), GameOver)

    def test_stockpile_runs_out(self, fed_state, market):
        state = fed_state
        for _ in range(2):
            state, market = end_of_day(state, market)
        assert state.day == 3
        assert isinstance(end_of_day(state, market), GameOver)


if __name__ == '__main__':
    # Run with pytest
    import sys
    sys.exit(pytest.main([__file__, '-v']))
