"""
Farm Simulation - Save/Load
Converts a (GameState, Market) pair to a plain JSON document and back.

Produce is stored by its catalog id. Market history and the random
generator are not saved: a loaded market starts from today's prices with
the default seed and no yesterday.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from farm_market import Market
from farm_model import (
    FAMILY_COUNT,
    GRID_SIZE,
    ZERO,
    CropTile,
    Family,
    Farm,
    GameState,
    Nutrition,
    Produce,
    Storage,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class SaveLoadError(Exception):
    """A snapshot could not be written, read or understood."""


def _whole(value: Any, what: str) -> int:
    """JSON integers only. Floats, bools and strings are rejected, not truncated."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise SaveLoadError(f"{what} must be a whole number, got {value!r}")
    return value


def _quantities_out(quantities: Dict[Produce, int]) -> Dict[str, int]:
    return {p.produce_id: q for p, q in quantities.items()}


def _quantities_in(data: Dict[str, int]) -> Dict[Produce, int]:
    """Stock counts by produce. Ids that fall back to the same entry add up."""
    out: Dict[Produce, int] = {}
    for produce_id, qty in data.items():
        produce = Produce.from_id(produce_id)
        out[produce] = out.get(produce, 0) + _whole(qty, f"Quantity of {produce_id}")
    return out


def _prices_in(data: Dict[str, int]) -> Dict[Produce, int]:
    """Prices by produce. A known id always wins; a fallback only fills a gap."""
    out: Dict[Produce, int] = {}
    unknown = []
    for produce_id, price in data.items():
        price = _whole(price, f"Price of {produce_id}")
        produce = Produce.lookup(produce_id)
        if produce is None:
            unknown.append((produce_id, price))
        else:
            out[produce] = price
    for produce_id, price in unknown:
        out.setdefault(Produce.from_id(produce_id), price)
    return out


def _nutrition_in(data: Dict[str, Any]) -> Nutrition:
    return Nutrition(*(_whole(data[k], f"Nutrition {k}") for k in ("cal", "protein", "carbs", "vitamins")))


def snapshot(state: GameState, market: Market) -> Dict[str, Any]:
    """Build the JSON-ready document for a game."""
    return {
        "schema_version": SCHEMA_VERSION,
        "day": state.day,
        "money": state.money,
        "families": [
            {
                "name": f.name,
                "dailyNeed": f.daily_need.as_dict(),
                "assigned": _quantities_out(f.assigned),
                "stockpile": f.stockpile.as_dict(),
            }
            for f in state.families
        ],
        "grid": [
            {"seed": t.seed.produce_id if t.seed else None, "daysGrown": t.days_grown}
            for t in state.grid
        ],
        "storage": {"stock": _quantities_out(state.storage.stock)},
        "farm": {
            "irrigationLevel": state.farm.irrigation_level,
            "yieldLevel": state.farm.yield_level,
        },
        "market": {"prices": _quantities_out(market.prices)},
    }


def restore(doc: Dict[str, Any]) -> Tuple[GameState, Market]:
    """Rebuild a live game from a snapshot document.

    Raises SaveLoadError for anything malformed. Unknown produce ids do
    not fail the load; they map to the first catalog entry.
    """
    try:
        version = doc.get("schema_version", SCHEMA_VERSION)
        if version != SCHEMA_VERSION:
            logger.warning(f"Snapshot schema_version {version} differs from {SCHEMA_VERSION}; loading anyway")

        families = [
            Family(
                name=str(f["name"]),
                daily_need=_nutrition_in(f["dailyNeed"]),
                assigned=_quantities_in(f.get("assigned", {})),
                stockpile=_nutrition_in(f["stockpile"]) if f.get("stockpile") else ZERO,
            )
            for f in doc["families"]
        ]
        grid = [
            CropTile(
                seed=Produce.from_id(t["seed"]) if t.get("seed") is not None else None,
                days_grown=_whole(t.get("daysGrown", 0), "daysGrown"),
            )
            for t in doc["grid"]
        ]
        if len(families) != FAMILY_COUNT:
            raise SaveLoadError(f"Expected {FAMILY_COUNT} families, found {len(families)}")
        if len(grid) != GRID_SIZE:
            raise SaveLoadError(f"Expected {GRID_SIZE} tiles, found {len(grid)}")

        farm = Farm(
            irrigation_level=_whole(doc["farm"]["irrigationLevel"], "irrigationLevel"),
            yield_level=_whole(doc["farm"]["yieldLevel"], "yieldLevel"),
        )
        day = _whole(doc["day"], "day")
        money = _whole(doc["money"], "money")
        if day < 1 or money < 0:
            raise SaveLoadError(f"Invalid day/money in snapshot: day={day}, money={money}")

        state = GameState(
            families=tuple(families),
            farm=farm,
            grid=tuple(grid),
            storage=Storage(_quantities_in(doc["storage"]["stock"])),
            day=day,
            money=money,
        )
        market = Market.from_prices(_prices_in(doc["market"]["prices"]))
    except SaveLoadError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise SaveLoadError(f"Malformed snapshot: {e}") from e
    return state, market


def save_game(path: Union[str, Path], state: GameState, market: Market) -> None:
    path = Path(path)
    try:
        path.write_text(json.dumps(snapshot(state, market), indent=2), encoding="utf-8")
    except OSError as e:
        raise SaveLoadError(f"Could not write {path}: {e}") from e
    logger.info(f"Saved day {state.day} to {path}")


def load_game(path: Union[str, Path]) -> Tuple[GameState, Market]:
    path = Path(path)
    try:
        doc = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SaveLoadError(f"Could not read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SaveLoadError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(doc, dict):
        raise SaveLoadError(f"{path} does not contain a snapshot object")
    state, market = restore(doc)
    logger.info(f"Loaded day {state.day} from {path}")
    return state, market
