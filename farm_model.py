"""
Farm Simulation - Core Model
Immutable value types for the farm: nutrition, produce, crop tiles,
upgrades, storage, families and the aggregate game state.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

GRID_SIZE = 12
FAMILY_COUNT = 4
MAX_UPGRADE_LEVEL = 3


class FarmError(Exception):
    """Base class for actions the farm rejects. State is never changed."""


class InvalidTargetError(FarmError):
    """Bad tile/family index, unknown produce or non-positive quantity."""


class TileOccupiedError(FarmError):
    pass


class InsufficientStockError(FarmError):
    pass


class InsufficientFundsError(FarmError):
    pass


class MaxLevelError(FarmError):
    pass


@dataclass(frozen=True)
class Nutrition:
    """Calories, protein, carbohydrate and vitamin amounts. Never negative."""
    cal: int = 0
    protein: int = 0
    carbs: int = 0
    vitamins: int = 0

    def __post_init__(self):
        for name, value in self.as_dict().items():
            if value < 0:
                raise ValueError(f"Nutrition.{name} must be >= 0, got {value}")

    def __add__(self, other: "Nutrition") -> "Nutrition":
        return Nutrition(
            self.cal + other.cal,
            self.protein + other.protein,
            self.carbs + other.carbs,
            self.vitamins + other.vitamins,
        )

    def __sub__(self, other: "Nutrition") -> "Nutrition":
        """Componentwise subtraction, clamped at zero."""
        return Nutrition(
            max(0, self.cal - other.cal),
            max(0, self.protein - other.protein),
            max(0, self.carbs - other.carbs),
            max(0, self.vitamins - other.vitamins),
        )

    def __mul__(self, k: int) -> "Nutrition":
        return Nutrition(self.cal * k, self.protein * k, self.carbs * k, self.vitamins * k)

    __rmul__ = __mul__

    def covers(self, need: "Nutrition") -> bool:
        """True if every component is at least the one in `need`."""
        return (
            self.cal >= need.cal
            and self.protein >= need.protein
            and self.carbs >= need.carbs
            and self.vitamins >= need.vitamins
        )

    def as_dict(self) -> Dict[str, int]:
        return {
            "cal": self.cal,
            "protein": self.protein,
            "carbs": self.carbs,
            "vitamins": self.vitamins,
        }

    def __str__(self) -> str:
        return f"{self.cal} cal / {self.protein}p / {self.carbs}c / {self.vitamins}v"


ZERO = Nutrition()


class Produce(Enum):
    """The closed catalog of crops. Values are (id, nutrition per unit, days to mature)."""
    RICE = ("Rice", Nutrition(2000, 50, 450, 20), 3)
    BEANS = ("Beans", Nutrition(1500, 100, 200, 80), 3)
    VEGETABLES = ("Vegetables", Nutrition(800, 30, 100, 200), 2)

    def __init__(self, produce_id: str, nutrition_per_unit: Nutrition, days_to_mature: int):
        self.produce_id = produce_id
        self.nutrition_per_unit = nutrition_per_unit
        self.days_to_mature = days_to_mature

    def __str__(self) -> str:
        return self.produce_id

    @classmethod
    def parse(cls, text: str) -> Optional["Produce"]:
        """Case-insensitive lookup for player input. None if unknown."""
        wanted = text.strip().lower()
        for produce in cls:
            if produce.produce_id.lower() == wanted:
                return produce
        return None

    @classmethod
    def lookup(cls, produce_id: str) -> Optional["Produce"]:
        """Exact lookup by persisted id. None if unknown."""
        for produce in cls:
            if produce.produce_id == produce_id:
                return produce
        return None

    @classmethod
    def from_id(cls, produce_id: str) -> "Produce":
        """Exact lookup for persisted ids; unknown ids fall back to the first entry."""
        produce = cls.lookup(produce_id)
        if produce is not None:
            return produce
        fallback = next(iter(cls))
        logger.warning(f"Unknown produce id {produce_id!r}, substituting {fallback}")
        return fallback


def _clean_quantities(owner: str, quantities: Dict[Produce, int]) -> Dict[Produce, int]:
    """Copy a quantity map, rejecting negatives and dropping zero entries."""
    cleaned = {}
    for produce, qty in dict(quantities).items():
        if qty < 0:
            raise ValueError(f"{owner} quantity for {produce} must be >= 0, got {qty}")
        if qty:
            cleaned[produce] = qty
    return cleaned


@dataclass(frozen=True)
class CropTile:
    """One plot. Empty, growing, or mature once days_grown reaches the seed's threshold."""
    seed: Optional[Produce] = None
    days_grown: int = 0

    def __post_init__(self):
        if self.days_grown < 0:
            raise ValueError(f"days_grown must be >= 0, got {self.days_grown}")
        if self.seed is None and self.days_grown != 0:
            raise ValueError("An empty tile cannot have grown days")

    @property
    def is_empty(self) -> bool:
        return self.seed is None

    @property
    def is_mature(self) -> bool:
        return self.seed is not None and self.days_grown >= self.seed.days_to_mature

    def plant(self, produce: Produce) -> "CropTile":
        """Plant a seed. An occupied tile is returned unchanged; callers check first."""
        if self.seed is not None:
            return self
        return CropTile(produce, 0)

    def grow_one_day(self, bonus_days: int = 0) -> "CropTile":
        if bonus_days < 0:
            raise ValueError(f"bonus_days must be >= 0, got {bonus_days}")
        if self.seed is None:
            return self
        return CropTile(self.seed, self.days_grown + 1 + bonus_days)

    def harvest(self) -> Tuple[Optional[Produce], "CropTile"]:
        """Return (produce, empty tile) if mature, else (None, self)."""
        if not self.is_mature:
            return None, self
        return self.seed, CropTile()


@dataclass(frozen=True)
class Farm:
    """Upgrade levels. Irrigation adds growth days, yield adds harvest units."""
    irrigation_level: int = 0
    yield_level: int = 0

    def __post_init__(self):
        for name in ("irrigation_level", "yield_level"):
            level = getattr(self, name)
            if not 0 <= level <= MAX_UPGRADE_LEVEL:
                raise ValueError(f"{name} must be within 0..{MAX_UPGRADE_LEVEL}, got {level}")

    @property
    def growth_bonus_days(self) -> int:
        return self.irrigation_level

    @property
    def yield_per_harvest(self) -> int:
        return 1 + self.yield_level


@dataclass(frozen=True)
class Storage:
    """Produce on hand. Absent keys mean zero."""
    stock: Dict[Produce, int] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "stock", _clean_quantities("Storage", self.stock))

    def __hash__(self):
        return hash(frozenset(self.stock.items()))

    def amount_of(self, produce: Produce) -> int:
        return self.stock.get(produce, 0)

    def has(self, produce: Produce, qty: int) -> bool:
        return self.amount_of(produce) >= qty

    def add(self, produce: Produce, qty: int) -> "Storage":
        if qty < 0:
            raise ValueError(f"Cannot add a negative quantity ({qty})")
        stock = dict(self.stock)
        stock[produce] = stock.get(produce, 0) + qty
        return Storage(stock)

    def take(self, produce: Produce, qty: int) -> "Storage":
        """Withdraw qty units, or raise InsufficientStockError."""
        if qty < 0:
            raise ValueError(f"Cannot take a negative quantity ({qty})")
        on_hand = self.amount_of(produce)
        if on_hand < qty:
            raise InsufficientStockError(
                f"Not enough {produce} in storage: have {on_hand}, need {qty}"
            )
        stock = dict(self.stock)
        stock[produce] = on_hand - qty
        return Storage(stock)


@dataclass(frozen=True)
class Family:
    """A household with a daily need, today's deliveries and a carried stockpile."""
    name: str
    daily_need: Nutrition
    assigned: Dict[Produce, int] = field(default_factory=dict)
    stockpile: Nutrition = ZERO

    def __post_init__(self):
        object.__setattr__(self, "assigned", _clean_quantities(f"Family {self.name}", self.assigned))

    def __hash__(self):
        return hash((self.name, self.daily_need, frozenset(self.assigned.items()), self.stockpile))

    @property
    def received_today(self) -> Nutrition:
        total = ZERO
        for produce, qty in self.assigned.items():
            total = total + produce.nutrition_per_unit * qty
        return total

    @property
    def is_satisfied(self) -> bool:
        return (self.stockpile + self.received_today).covers(self.daily_need)

    def receive(self, produce: Produce, qty: int) -> "Family":
        """Record a delivery. The stockpile takes the nutrition immediately."""
        assigned = dict(self.assigned)
        assigned[produce] = assigned.get(produce, 0) + qty
        return replace(
            self,
            assigned=assigned,
            stockpile=self.stockpile + produce.nutrition_per_unit * qty,
        )

    def settle(self) -> "Family":
        """End-of-day consumption: roll the surplus forward and clear deliveries."""
        remaining = self.stockpile + self.received_today - self.daily_need
        return Family(self.name, self.daily_need, {}, remaining)


@dataclass(frozen=True)
class GameState:
    """Aggregate snapshot. Replaced wholesale by every action."""
    families: Tuple[Family, ...]
    farm: Farm
    grid: Tuple[CropTile, ...]
    storage: Storage
    day: int = 1
    money: int = 0

    def __post_init__(self):
        object.__setattr__(self, "families", tuple(self.families))
        object.__setattr__(self, "grid", tuple(self.grid))

    @classmethod
    def new(cls, families, day: int = 1, money: int = 0) -> "GameState":
        """Fresh farm: no upgrades, an empty grid and empty storage."""
        return cls(
            families=tuple(families),
            farm=Farm(),
            grid=tuple(CropTile() for _ in range(GRID_SIZE)),
            storage=Storage(),
            day=day,
            money=money,
        )

    def tile(self, index: int) -> CropTile:
        if not 0 <= index < len(self.grid):
            raise InvalidTargetError(f"No tile at index {index}")
        return self.grid[index]

    def family(self, index: int) -> Family:
        if not 0 <= index < len(self.families):
            raise InvalidTargetError(f"No family at index {index}")
        return self.families[index]

    def with_tile(self, index: int, tile: CropTile) -> "GameState":
        self.tile(index)
        grid = list(self.grid)
        grid[index] = tile
        return replace(self, grid=tuple(grid))

    def with_family(self, index: int, family: Family) -> "GameState":
        self.family(index)
        families = list(self.families)
        families[index] = family
        return replace(self, families=tuple(families))
