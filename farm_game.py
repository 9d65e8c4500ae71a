#!/usr/bin/env python3
"""
Family Farm Simulation - Gameplay Loop
A turn-based farm game: grow crops, feed four families and trade produce
at a drifting market, one day at a time.
"""

import argparse
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import yaml

from farm_market import DEFAULT_BASE_PRICE, DEFAULT_SEED, Market
from farm_model import (
    FAMILY_COUNT,
    Family,
    FarmError,
    GameState,
    InvalidTargetError,
    Nutrition,
    Produce,
)
from farm_rules import GameOver, assign_to_family, end_of_day, harvest_at, plant_at, sell_produce
from farm_save import SaveLoadError, load_game, save_game
from farm_upgrades import Upgrade, buy, next_cost

# Setup logger for library code
logger = logging.getLogger(__name__)

DEFAULT_FAMILY_NEEDS = {
    "Ali": Nutrition(900, 25, 125, 30),
    "Bala": Nutrition(1000, 30, 150, 35),
    "Chen": Nutrition(850, 25, 120, 20),
    "Devi": Nutrition(950, 55, 135, 30),
}
DEFAULT_STOCKPILE_DAYS = 3


class Notice(Enum):
    """What changed after an action, for whoever is drawing the game."""
    INVENTORY = "inventory"
    MONEY = "money"
    FARM = "farm"
    FAMILIES = "families"
    GRID = "grid"
    DAY = "day"
    MARKET = "market"


@dataclass
class NewGameSetup:
    """Starting parameters read from new_game.yaml."""
    families: List[Family] = field(default_factory=list)
    day: int = 1
    money: int = 0
    base_price: int = DEFAULT_BASE_PRICE
    seed: int = DEFAULT_SEED


def default_families(stockpile_days: int = DEFAULT_STOCKPILE_DAYS) -> List[Family]:
    return [
        Family(name, need, stockpile=need * stockpile_days)
        for name, need in DEFAULT_FAMILY_NEEDS.items()
    ]


class GameEngine:
    """Holds the current game and market and applies player actions to them.

    The pair is only ever replaced by the result of a completed action;
    a rejected action leaves it exactly as it was.
    """

    def __init__(self, data_path: Optional[str] = None, seed: Optional[int] = None):
        # Default to ./data if it exists next to this module, otherwise fall back to the module directory
        if data_path is None:
            base_dir = Path(__file__).parent
            data_dir = base_dir / "data"
            data_path = data_dir if data_dir.is_dir() else base_dir
        self.setup = self.load_game_data(str(data_path))
        if seed is not None:
            self.setup.seed = seed

        self.state: GameState
        self.market: Market
        self.game_over: Optional[str] = None
        self.last_error: Optional[str] = None
        self.notices: List[Notice] = []
        self.new_game()

    def load_game_data(self, path: str) -> NewGameSetup:
        """Load new_game.yaml, falling back to the built-in setup on any problem."""
        file_path = Path(path) / "new_game.yaml"
        try:
            with open(file_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
                logger.debug(f"Loaded {file_path.name}")
        except FileNotFoundError:
            logger.error(f"Missing data file: {file_path}")
            data = {}
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in {file_path.name}: {e}")
            data = {}

        try:
            setup = self._parse_setup(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error(f"Bad new-game data in {file_path.name}, using defaults: {e}")
            setup = NewGameSetup(families=default_families())

        logger.info(
            f"Loaded new-game data: {len(setup.families)} families, "
            f"day {setup.day}, money {setup.money}, base price {setup.base_price}"
        )
        return setup

    @staticmethod
    def _parse_setup(data: dict) -> NewGameSetup:
        stockpile_days = int(data.get("stockpile_days", DEFAULT_STOCKPILE_DAYS))
        entries = data.get("families")
        if not entries:
            families = default_families(stockpile_days)
        else:
            families = []
            for entry in entries:
                need = Nutrition(**{k: int(v) for k, v in entry["daily_need"].items()})
                families.append(Family(str(entry["name"]), need, stockpile=need * stockpile_days))
        if len(families) != FAMILY_COUNT:
            raise ValueError(f"expected {FAMILY_COUNT} families, got {len(families)}")

        market = data.get("market") or {}
        return NewGameSetup(
            families=families,
            day=int(data.get("starting_day", 1)),
            money=int(data.get("starting_money", 0)),
            base_price=int(market.get("base_price", DEFAULT_BASE_PRICE)),
            seed=int(market.get("seed", DEFAULT_SEED)),
        )

    def new_game(self):
        """Start over from the loaded setup."""
        self.state = GameState.new(self.setup.families, day=self.setup.day, money=self.setup.money)
        self.market = Market.initial(base_price=self.setup.base_price, seed=self.setup.seed)
        self.game_over = None
        self.last_error = None
        self.notices = list(Notice)

    # ------------------------------------------------------------------
    # Actions

    def _attempt(self, action: str, fn: Callable):
        """Run an action, recording a rejection instead of raising it."""
        if self.game_over:
            self.last_error = f"Game is over: {self.game_over}"
            logger.warning(f"{action} ignored, game is over")
            return None
        try:
            result = fn()
        except FarmError as e:
            self.last_error = str(e)
            logger.warning(f"{action} rejected: {e}")
            return None
        self.last_error = None
        return result

    def _notify(self, *notices: Notice):
        for notice in notices:
            if notice not in self.notices:
                self.notices.append(notice)

    def pop_notices(self) -> List[Notice]:
        notices, self.notices = self.notices, []
        return notices

    @staticmethod
    def _produce(name: str) -> Produce:
        produce = Produce.parse(name)
        if produce is None:
            raise InvalidTargetError(f"Unknown produce: {name}")
        return produce

    def family_index(self, key: str) -> Optional[int]:
        """Find a family by name or by 1-based number."""
        key = key.strip()
        if key.isdigit():
            index = int(key) - 1
            return index if 0 <= index < len(self.state.families) else None
        for i, family in enumerate(self.state.families):
            if family.name.lower() == key.lower():
                return i
        return None

    def plant(self, index: int, produce_name: str) -> bool:
        def run():
            self.state = plant_at(self.state, index, self._produce(produce_name))
            return True
        if self._attempt("plant", run):
            self._notify(Notice.GRID)
            return True
        return False

    def harvest(self, index: int) -> int:
        """Harvest a tile. Returns units gained, 0 if nothing was ready."""
        def run():
            state, produce, units = harvest_at(self.state, index)
            if produce is None:
                raise FarmError(f"Tile {index} is not ready to harvest")
            self.state = state
            logger.debug(f"Harvested {units} {produce} from tile {index}")
            return units
        units = self._attempt("harvest", run)
        if units:
            self._notify(Notice.GRID, Notice.INVENTORY)
        return units or 0

    def harvest_all(self) -> int:
        total = 0
        for index, tile in enumerate(self.state.grid):
            if tile.is_mature:
                total += self.harvest(index)
        return total

    def assign(self, family_index: int, produce_name: str, qty: int) -> bool:
        def run():
            self.state = assign_to_family(self.state, family_index, self._produce(produce_name), qty)
            return True
        if self._attempt("assign", run):
            self._notify(Notice.INVENTORY, Notice.FAMILIES)
            return True
        return False

    def sell(self, produce_name: str, qty: int) -> int:
        """Sell produce at today's price. Returns revenue, 0 if the sale failed."""
        def run():
            self.state, revenue = sell_produce(self.state, self.market, self._produce(produce_name), qty)
            return revenue
        revenue = self._attempt("sell", run)
        if revenue:
            self._notify(Notice.INVENTORY, Notice.MONEY)
        return revenue or 0

    def buy_upgrade(self, key: str) -> bool:
        def run():
            upgrade = Upgrade.parse(key)
            if upgrade is None:
                raise InvalidTargetError(f"Unknown upgrade: {key}")
            self.state = buy(self.state, upgrade)
            return True
        if self._attempt("upgrade", run):
            self._notify(Notice.FARM, Notice.MONEY)
            return True
        return False

    def end_day(self) -> bool:
        """Close the day. Returns False if the game ended (or had already ended)."""
        outcome = self._attempt("end day", lambda: end_of_day(self.state, self.market))
        if outcome is None:
            return False
        if isinstance(outcome, GameOver):
            self.game_over = outcome.reason
            logger.info(f"Game over on day {self.state.day}: {outcome.reason}")
            return False
        self.state, self.market = outcome
        logger.info(f"Advanced to day {self.state.day}")
        self._notify(Notice.DAY, Notice.FAMILIES, Notice.GRID, Notice.MARKET)
        return True

    def save(self, path: str) -> bool:
        try:
            save_game(path, self.state, self.market)
        except SaveLoadError as e:
            self.last_error = str(e)
            logger.error(f"Save failed: {e}")
            return False
        self.last_error = None
        return True

    def load(self, path: str) -> bool:
        """Replace the current game with a saved one. A failed load changes nothing."""
        try:
            state, market = load_game(path)
        except SaveLoadError as e:
            self.last_error = str(e)
            logger.error(f"Load failed: {e}")
            return False
        self.state, self.market = state, market
        self.game_over = None
        self.last_error = None
        self._notify(*Notice)
        return True

    # ------------------------------------------------------------------
    # Display

    def get_status(self) -> str:
        """Get current farm status as a formatted string."""
        state = self.state
        lines = []
        lines.append(f"\n{'='*60}")
        lines.append(f"Day {state.day} | Money: {state.money}")
        lines.append(f"{'='*60}")

        lines.append("\n👪 FAMILIES:")
        for i, family in enumerate(state.families, start=1):
            mark = "✓" if family.is_satisfied else "✗"
            lines.append(f"  [{mark}] {i}. {family.name}: needs {family.daily_need}")
            lines.append(f"         stockpile {family.stockpile}")

        if state.storage.stock:
            lines.append("\n📦 STORAGE:")
            for produce in Produce:
                if state.storage.amount_of(produce):
                    lines.append(f"  {produce}: {state.storage.amount_of(produce)}")
        else:
            lines.append("\n📦 STORAGE: Empty")

        lines.append("\n🌱 FIELD:")
        for i, tile in enumerate(state.grid, start=1):
            if tile.is_empty:
                text = "empty"
            elif tile.is_mature:
                text = f"{tile.seed} READY"
            else:
                text = f"{tile.seed} {tile.days_grown}/{tile.seed.days_to_mature}"
            lines.append(f"  {i:>2}. {text}")

        lines.append("\n💰 MARKET:")
        for produce in Produce:
            delta = self.market.delta(produce)
            change = "—" if delta is None else f"{delta:+d}"
            lines.append(f"  {produce}: {self.market.quote(produce)} ({change})")

        lines.append("\n🔧 UPGRADES:")
        for upgrade in Upgrade:
            cost = next_cost(state.farm, upgrade)
            price = "max level" if cost is None else f"level {cost.level} for {cost.price}"
            lines.append(f"  {upgrade.key}: {upgrade.title} - {price}")

        if self.game_over:
            lines.append(f"\n☠ {self.game_over}")
        return "\n".join(lines)

    def print_status(self):
        """Display current farm status (CLI wrapper)."""
        print(self.get_status())
        logger.debug("Farm status displayed")


HELP = """Commands:
  plant <tile> <produce>          - Plant a seed on tile 1-12
  harvest <tile|all>              - Harvest mature tiles
  assign <family> <produce> <qty> - Give produce from storage to a family
  sell <produce> <qty>            - Sell produce at today's price
  upgrade <irrigation|yield>      - Buy the next upgrade level
  next                            - End the day
  status                          - Show farm status
  save <file> / load <file>       - Save or load the game
  help                            - Show this help
  quit                            - Exit game"""


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Family farm simulation")
    p.add_argument("--data", help="directory containing new_game.yaml")
    p.add_argument("--load", help="saved game to resume")
    p.add_argument("--seed", type=int, help="market random seed")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return p.parse_args(argv)


def run_command(game: GameEngine, cmd: List[str]) -> bool:
    """Run one parsed command. Returns False when the player quits."""
    action = cmd[0].lower()

    if action == "quit":
        print("Thanks for playing!")
        return False

    elif action == "help":
        print(HELP)

    elif action == "status":
        game.print_status()

    elif action == "plant" and len(cmd) >= 3:
        if game.plant(int(cmd[1]) - 1, cmd[2]):
            print(f"✓ Planted {cmd[2]} on tile {cmd[1]}")
        else:
            print(f"✗ Cannot plant: {game.last_error}")

    elif action == "harvest" and len(cmd) >= 2:
        units = game.harvest_all() if cmd[1].lower() == "all" else game.harvest(int(cmd[1]) - 1)
        if units:
            print(f"✓ Harvested {units} unit(s)")
        else:
            print(f"✗ Nothing harvested: {game.last_error or 'no mature tiles'}")

    elif action == "assign" and len(cmd) >= 4:
        index = game.family_index(cmd[1])
        if index is None:
            print(f"✗ No family called {cmd[1]}")
        elif game.assign(index, cmd[2], int(cmd[3])):
            print(f"✓ Gave {cmd[3]} {cmd[2]} to {game.state.families[index].name}")
        else:
            print(f"✗ Cannot assign: {game.last_error}")

    elif action == "sell" and len(cmd) >= 3:
        revenue = game.sell(cmd[1], int(cmd[2]))
        if revenue:
            print(f"✓ Sold {cmd[2]} {cmd[1]} for {revenue}")
        else:
            print(f"✗ Cannot sell: {game.last_error}")

    elif action == "upgrade" and len(cmd) >= 2:
        if game.buy_upgrade(cmd[1]):
            print(f"✓ Upgraded {cmd[1]}")
        else:
            print(f"✗ Cannot upgrade: {game.last_error}")

    elif action == "next":
        if game.end_day():
            print(f"Advanced to day {game.state.day}")
            game.print_status()
        else:
            print(f"\n{game.game_over}")
            return False

    elif action == "save" and len(cmd) >= 2:
        print(f"✓ Saved to {cmd[1]}" if game.save(cmd[1]) else f"✗ {game.last_error}")

    elif action == "load" and len(cmd) >= 2:
        if game.load(cmd[1]):
            print(f"✓ Loaded {cmd[1]}")
            game.print_status()
        else:
            print(f"✗ {game.last_error}")

    else:
        print("Unknown command. Type 'help' for commands.")

    return True


def main(argv: Optional[Sequence[str]] = None):
    """Main game loop."""
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    print("=" * 60)
    print("FAMILY FARM")
    print("=" * 60)
    print("\nFeed Ali, Bala, Chen and Devi every day. If any family goes hungry, they move out.")

    game = GameEngine(data_path=args.data, seed=args.seed)
    if args.load and not game.load(args.load):
        print(f"Could not load {args.load}: {game.last_error}")
    game.print_status()
    print("\n" + HELP)

    while True:
        try:
            cmd = input(f"\n[Day {game.state.day}]> ").strip().split()
            if not cmd:
                continue
            if not run_command(game, cmd):
                break
        except ValueError:
            print("Tile numbers and quantities must be whole numbers.")
        except (KeyboardInterrupt, EOFError):
            print("\nExiting...")
            break


if __name__ == "__main__":
    main()
