"""
Farm Simulation - Rules
Player actions and the end-of-day transition. Every function takes the
current values and returns new ones; nothing is modified in place.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple, Union

from farm_market import Market
from farm_model import (
    Family,
    GameState,
    InvalidTargetError,
    Produce,
    TileOccupiedError,
)

logger = logging.getLogger(__name__)

GAME_OVER_REASON = "A family moved out! Game over."


@dataclass(frozen=True)
class GameOver:
    """Terminal outcome of an end-of-day check. Not an error."""
    reason: str
    unsatisfied: Tuple[str, ...] = ()


def _require_positive(qty: int) -> None:
    if qty <= 0:
        raise InvalidTargetError(f"Quantity must be positive, got {qty}")


def plant_at(state: GameState, index: int, produce: Produce) -> GameState:
    tile = state.tile(index)
    if not tile.is_empty:
        raise TileOccupiedError(f"Tile {index} already has {tile.seed} planted")
    return state.with_tile(index, tile.plant(produce))


def harvest_at(state: GameState, index: int) -> Tuple[GameState, Optional[Produce], int]:
    """Harvest a mature tile into storage.

    Returns (new state, produce, units). A tile that is not ready gives
    (state, None, 0) with the state unchanged.
    """
    produce, cleared = state.tile(index).harvest()
    if produce is None:
        return state, None, 0
    units = state.farm.yield_per_harvest
    new_state = replace(
        state.with_tile(index, cleared),
        storage=state.storage.add(produce, units),
    )
    return new_state, produce, units


def assign_to_family(state: GameState, family_index: int, produce: Produce, qty: int) -> GameState:
    """Move qty units from storage to a family.

    Storage is withdrawn first; if it falls short, InsufficientStockError
    propagates and nothing changes.
    """
    _require_positive(qty)
    family = state.family(family_index)
    storage = state.storage.take(produce, qty)
    return replace(state.with_family(family_index, family.receive(produce, qty)), storage=storage)


def sell_produce(state: GameState, market: Market, produce: Produce, qty: int) -> Tuple[GameState, int]:
    """Sell at today's quote. Returns (new state, revenue); the market is unchanged."""
    _require_positive(qty)
    storage = state.storage.take(produce, qty)
    revenue = market.sell(produce, qty)
    return replace(state, storage=storage, money=state.money + revenue), revenue


def unsatisfied_families(state: GameState) -> List[Family]:
    return [f for f in state.families if not f.is_satisfied]


def end_of_day(state: GameState, market: Market) -> Union[GameOver, Tuple[GameState, Market]]:
    """Advance one day.

    If any family is unsatisfied the result is GameOver and nothing
    advances. Otherwise families settle, every tile grows by the farm's
    irrigation bonus, the day counter moves on and the market evolves.
    """
    hungry = unsatisfied_families(state)
    if hungry:
        names = tuple(f.name for f in hungry)
        logger.info(f"Day {state.day} ends with unmet needs: {', '.join(names)}")
        return GameOver(GAME_OVER_REASON, names)

    bonus = state.farm.growth_bonus_days
    next_state = replace(
        state,
        families=tuple(f.settle() for f in state.families),
        grid=tuple(tile.grow_one_day(bonus) for tile in state.grid),
        day=state.day + 1,
    )
    return next_state, market.next_day()
