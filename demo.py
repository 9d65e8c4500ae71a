#!/usr/bin/env python3
"""
Demo gameplay session showing the farm loop in action.
This script plays the first week of a typical game.
"""

from farm_game import GameEngine, main


def demo_session():
    """Run a scripted demo showing key gameplay mechanics."""

    print("=" * 70)
    print("FAMILY FARM - DEMO SESSION")
    print("=" * 70)
    print("\nGoal: Keep all four families fed for a week and afford an upgrade")
    print("Strategy: plant a mixed field → live off stockpiles → harvest → feed → sell surplus")
    print()

    game = GameEngine()
    game.print_status()

    # Phase 1: Planting
    print("\n" + "=" * 70)
    print("PHASE 1: Plant the field (Day 1)")
    print("=" * 70)

    for tile in range(12):
        crop = ("Beans", "Rice", "Vegetables")[tile % 3]
        game.plant(tile, crop)
    print("\nPlanted 4 tiles each of Beans, Rice and Vegetables")

    # Phase 2: Families live off their stockpiles
    print("\n" + "=" * 70)
    print("PHASE 2: Let the crops grow (Days 1-3)")
    print("=" * 70)

    for _ in range(3):
        game.end_day()
        print(f"Day {game.state.day}: families eat from their stockpiles...")
        # Vegetables ripen first; replant as soon as they come in
        for tile, crop in enumerate(game.state.grid):
            if crop.is_mature and crop.seed.produce_id == "Vegetables":
                game.harvest(tile)
                game.plant(tile, "Vegetables")

    game.print_status()

    # Phase 3: Harvest and feed
    print("\n" + "=" * 70)
    print("PHASE 3: Harvest and feed the families (Day 4)")
    print("=" * 70)

    units = game.harvest_all()
    print(f"\nHarvested {units} unit(s)")
    for index, family in enumerate(game.state.families):
        if game.assign(index, "Beans", 1):
            print(f"✓ {family.name} received 1 Beans")
        else:
            print(f"✗ {family.name}: {game.last_error}")

    # Phase 4: Sell the surplus
    print("\n" + "=" * 70)
    print("PHASE 4: Sell surplus at the market")
    print("=" * 70)

    for produce in game.state.storage.stock:
        qty = game.state.storage.amount_of(produce)
        if produce.produce_id != "Beans" and qty > 0:
            revenue = game.sell(produce.produce_id, qty)
            print(f"Sold {qty} {produce} for {revenue}")

    # Phase 5: Keep going
    print("\n" + "=" * 70)
    print("PHASE 5: Keep the farm running (Days 4-7)")
    print("=" * 70)

    while game.state.day < 8 and not game.game_over:
        if not game.end_day():
            break
        game.harvest_all()
        for tile, crop in enumerate(game.state.grid):
            if crop.is_empty:
                game.plant(tile, "Beans")
        for index, family in enumerate(game.state.families):
            if not family.is_satisfied:
                game.assign(index, "Beans", 1)
        print(f"Day {game.state.day}: money {game.state.money}")

    if game.buy_upgrade("irrigation"):
        print("\n✓ Bought irrigation")
    else:
        print(f"\n✗ No irrigation yet: {game.last_error}")

    game.print_status()

    # Summary
    print("\n" + "=" * 70)
    print("DEMO COMPLETE!" if not game.game_over else f"DEMO ENDED: {game.game_over}")
    print("=" * 70)
    print("\nKey gameplay mechanics demonstrated:")
    print("  1. Planting and growth (plant, end_day)")
    print("  2. Harvesting into storage (harvest, harvest_all)")
    print("  3. Feeding families from storage (assign)")
    print("  4. Selling at drifting market prices (sell)")
    print("  5. Farm upgrades (buy_upgrade)")

    return game


if __name__ == "__main__":
    demo_session()

    print("\n" + "=" * 70)
    print("Launch the interactive mode? (y/n)")
    choice = input("> ").strip().lower()

    if choice == 'y':
        print("\nStarting interactive mode...")
        print("Type 'help' for commands\n")
        main([])
