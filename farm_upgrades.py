"""
Farm Simulation - Upgrades
Cost curve and purchase rules for the irrigation and yield upgrades.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Sequence

from farm_model import (
    MAX_UPGRADE_LEVEL,
    Farm,
    GameState,
    InsufficientFundsError,
    MaxLevelError,
)

logger = logging.getLogger(__name__)

# Index i is the price of level i + 1.
COST_CURVE = (500, 1000, 2000)
FALLBACK_COST = 1000


class Upgrade(Enum):
    IRRIGATION = ("irrigation", "Increased Irrigation (-1 Day to Mature)", "irrigation_level")
    YIELD = ("yield", "Increased Yield (+1 per Harvest)", "yield_level")

    def __init__(self, key: str, title: str, farm_field: str):
        self.key = key
        self.title = title
        self.farm_field = farm_field

    @property
    def max_level(self) -> int:
        return MAX_UPGRADE_LEVEL

    @classmethod
    def parse(cls, text: str) -> Optional["Upgrade"]:
        wanted = text.strip().lower()
        for upgrade in cls:
            if upgrade.key == wanted:
                return upgrade
        return None


@dataclass(frozen=True)
class UpgradeCost:
    """Price of the next level (level is the one being bought)."""
    level: int
    price: int


def current_level(farm: Farm, upgrade: Upgrade) -> int:
    return getattr(farm, upgrade.farm_field)


def next_cost(farm: Farm, upgrade: Upgrade,
              curve: Sequence[int] = COST_CURVE) -> Optional[UpgradeCost]:
    """Cost of the next level, or None if the upgrade is maxed."""
    level = current_level(farm, upgrade)
    if level >= upgrade.max_level:
        return None
    price = curve[level] if level < len(curve) else FALLBACK_COST
    return UpgradeCost(level + 1, price)


def buy(state: GameState, upgrade: Upgrade) -> GameState:
    """Raise the upgrade one level and pay for it.

    Raises MaxLevelError or InsufficientFundsError without changing anything.
    """
    cost = next_cost(state.farm, upgrade)
    if cost is None:
        raise MaxLevelError("Already at max level.")
    if state.money < cost.price:
        raise InsufficientFundsError("Not enough money.")

    farm = replace(state.farm, **{upgrade.farm_field: cost.level})
    logger.debug(f"Bought {upgrade.key} level {cost.level} for {cost.price}")
    return replace(state, farm=farm, money=state.money - cost.price)
