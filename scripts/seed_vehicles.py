#!/usr/bin/env python3
"""
Seed the vehicles table with a deterministic inventory.

Usage:
    DATABASE_URL=postgresql+psycopg://... python scripts/seed_vehicles.py
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dealer_finance.infra.db.seed import NUM_VEHICLES, RANDOM_SEED, seed_vehicles
from dealer_finance.infra.db.session import get_session_local


def main() -> None:
    print(f"🌱 Seeding database with {NUM_VEHICLES} vehicles (seed={RANDOM_SEED})...")

    vehicles = seed_vehicles(get_session_local())

    print(f"✅ Successfully seeded {len(vehicles)} vehicles!")
    print("\n📊 Sample vehicles:")
    for i, vehicle in enumerate(vehicles[:5], 1):
        print(
            f"   {i}. {vehicle.year} {vehicle.make} {vehicle.model} - "
            f"${vehicle.price:,.2f} (stock {vehicle.stock})"
        )
    if len(vehicles) > 5:
        print(f"   ... and {len(vehicles) - 5} more")


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print(f"❌ Error seeding database: {e}", file=sys.stderr)
        sys.exit(1)
