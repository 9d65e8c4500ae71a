"""
Farm Simulation - Market
Produce prices that drift by a bounded random walk once per day.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from farm_model import InvalidTargetError, Produce

logger = logging.getLogger(__name__)

DEFAULT_SEED = 42
DEFAULT_BASE_PRICE = 50
FALLBACK_QUOTE = 10
EPSILON_PERCENT = 5


def _rng_state(seed: int) -> Tuple:
    return random.Random(seed).getstate()


@dataclass(frozen=True)
class Market:
    """Today's prices, yesterday's prices and the random generator state.

    The generator state is carried as a value so that next_day() is a pure
    function: the same market always evolves into the same next market.
    It takes no part in equality.
    """
    prices: Dict[Produce, int]
    yesterday: Dict[Produce, int] = field(default_factory=dict)
    rng_state: Tuple = field(default_factory=lambda: _rng_state(DEFAULT_SEED), compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "prices", dict(self.prices))
        object.__setattr__(self, "yesterday", dict(self.yesterday))
        for produce, price in self.prices.items():
            if price < 1:
                raise ValueError(f"Price of {produce} must be >= 1, got {price}")

    def __hash__(self):
        return hash((frozenset(self.prices.items()), frozenset(self.yesterday.items())))

    @classmethod
    def initial(cls, catalog: Optional[Iterable[Produce]] = None,
                base_price: int = DEFAULT_BASE_PRICE, seed: int = DEFAULT_SEED) -> "Market":
        """Every produce at the same starting price, no history."""
        catalog = list(Produce) if catalog is None else list(catalog)
        return cls({p: base_price for p in catalog}, rng_state=_rng_state(seed))

    @classmethod
    def from_prices(cls, prices: Dict[Produce, int], seed: int = DEFAULT_SEED) -> "Market":
        """Rebuild from a price map alone. Yesterday is unknown."""
        return cls(prices, rng_state=_rng_state(seed))

    def quote(self, produce: Produce) -> int:
        return self.prices.get(produce, FALLBACK_QUOTE)

    def sell(self, produce: Produce, qty: int) -> int:
        """Revenue for qty units at today's quote. Does not touch storage."""
        if qty <= 0:
            raise InvalidTargetError(f"Quantity to sell must be positive, got {qty}")
        return self.quote(produce) * qty

    def delta(self, produce: Produce) -> Optional[int]:
        """Change since yesterday, or None when either price is unknown."""
        if produce not in self.prices or produce not in self.yesterday:
            return None
        return self.prices[produce] - self.yesterday[produce]

    def next_day(self) -> "Market":
        rng = random.Random()
        rng.setstate(self.rng_state)
        # catalog order keeps the draws reproducible
        ordered = [p for p in Produce if p in self.prices]
        evolved = {}
        for produce in ordered:
            price = self.prices[produce]
            epsilon = rng.randint(-EPSILON_PERCENT, EPSILON_PERCENT)
            evolved[produce] = max(1, price + (price * epsilon) // 100)
        logger.debug(f"Market moved: {self._format(self.prices)} -> {self._format(evolved)}")
        return Market(evolved, yesterday=self.prices, rng_state=rng.getstate())

    @staticmethod
    def _format(prices: Dict[Produce, int]) -> str:
        return ", ".join(f"{p}={v}" for p, v in prices.items())
