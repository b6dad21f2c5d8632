#!/usr/bin/env python3
"""
Generate an island and print its summary.

Usage:
    python generate_island.py [seed] [--radius N] [--output FILE] [--save FILE]

If no seed is provided, defaults to "default_seed"
"""

import argparse
import json
from pathlib import Path

from py_isle.config import configure_logging
from py_isle.core.island_generator import IslandOptions, generate_island
from py_isle.core.territory import TerritoryManager
from py_isle.export.serializers import RUNTIME_PRNG_OFFSET, export_island, save_island
from py_isle.utils.random import create_prng


def print_summary(island):
    stats = island.stats
    print(f"\nIsland '{island.seed}' (radius {island.radius})")
    print(f"  Tiles: {stats['total_tiles']}  land: {stats['land_tiles']} ({stats['land_percentage']}%)")
    print(f"  Rivers: {len(island.rivers)}")
    print("  Terrain:")
    for tag, count in stats["terrain_counts"].items():
        print(f"    {tag:<14} {count}")

    print("  Locations:")
    for location in island.locations.all():
        print(f"    {location.type.value:<14} {location.name} at {location.tile.q},{location.tile.r}")

    print("  Factions:")
    for key, territory in island.factions.items():
        print(f"    {territory.name:<14} {territory.size} tiles")
    print(f"  Generated in {island.generation_time_seconds:.2f}s")


def main():
    """Main function."""
    parser = argparse.ArgumentParser(description="Generate a hex island")
    parser.add_argument("seed", nargs="?", default="default_seed", help="Seed string")
    parser.add_argument("--radius", type=int, default=20, help="Hex radius of the map")
    parser.add_argument("--output", help="Write the JSON export to this file")
    parser.add_argument("--save", help="Write a save file with the player start claimed")
    args = parser.parse_args()

    configure_logging()

    island = generate_island(args.seed, IslandOptions(radius=args.radius))
    print_summary(island)

    if args.output:
        path = Path(args.output)
        path.write_text(json.dumps(export_island(island), indent=2), encoding="utf-8")
        print(f"\nExport written to {path}")

    if args.save:
        manager = TerritoryManager(create_prng(island.seed, offset=RUNTIME_PRNG_OFFSET))
        manager.init_from_island(island)
        start = island.starting_tile
        if start is not None:
            manager.generate_starting_territories((start.q, start.r), game_minutes=0)
        path = save_island(island, manager, args.save)
        print(f"Save written to {path}")


if __name__ == "__main__":
    main()
