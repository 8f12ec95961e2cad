"""
Deterministic vehicle inventory for local runs.

- Deterministic: fixed seed -> same inventory every run
- Idempotent: clears the vehicles table before seeding
- Prices correlated with make band and year
"""

from __future__ import annotations

import random
import uuid
from decimal import Decimal

from sqlalchemy import delete
from sqlalchemy.orm import Session, sessionmaker

from dealer_finance.infra.db.models.vehicle import VehicleRow


RANDOM_SEED = 42
NUM_VEHICLES = 30
CURRENT_YEAR = 2026

# Base prices in MXN
PRICE_BANDS = {
    "economy": (Decimal("150000"), Decimal("250000")),
    "mid_range": (Decimal("250000"), Decimal("450000")),
    "premium": (Decimal("450000"), Decimal("800000")),
}

MODELS_BY_MAKE = {
    "Nissan": ("economy", ["Versa", "Sentra", "Kicks", "March"]),
    "Chevrolet": ("economy", ["Aveo", "Onix", "Tracker"]),
    "Kia": ("economy", ["Rio", "Forte", "Seltos"]),
    "Toyota": ("mid_range", ["Corolla", "Camry", "RAV4", "Hilux"]),
    "Honda": ("mid_range", ["Civic", "Accord", "CR-V"]),
    "Mazda": ("mid_range", ["Mazda3", "CX-5", "CX-30"]),
    "BMW": ("premium", ["Serie 3", "X1", "X3"]),
    "Audi": ("premium", ["A3", "A4", "Q5"]),
}


def vehicle_price(rng: random.Random, band: str, year: int) -> Decimal:
    """Random base price in the band, ~8% depreciation per year (capped at 60%), rounded to 1000."""
    low, high = PRICE_BANDS[band]
    base = Decimal(rng.randint(int(low), int(high)))
    depreciation = min(Decimal("0.08") * max(0, CURRENT_YEAR - year), Decimal("0.60"))
    price = base * (Decimal("1") - depreciation)
    return max((price / 1000).quantize(Decimal("1")) * 1000, Decimal("80000")).quantize(
        Decimal("0.01")
    )


def build_vehicles(count: int = NUM_VEHICLES, seed: int = RANDOM_SEED) -> list[VehicleRow]:
    rng = random.Random(seed)
    rows = []
    for _ in range(count):
        make = rng.choice(sorted(MODELS_BY_MAKE))
        band, models = MODELS_BY_MAKE[make]
        year = rng.randint(CURRENT_YEAR - 6, CURRENT_YEAR)
        rows.append(
            VehicleRow(
                id=str(uuid.UUID(int=rng.getrandbits(128), version=4)),
                make=make,
                model=rng.choice(models),
                year=year,
                price=vehicle_price(rng, band, year),
                stock=rng.randint(0, 5),
            )
        )
    return rows


def seed_vehicles(
    session_factory: sessionmaker[Session],
    count: int = NUM_VEHICLES,
    seed: int = RANDOM_SEED,
) -> list[VehicleRow]:
    """Replace the vehicles table with a deterministic inventory."""
    vehicles = build_vehicles(count, seed)
    with session_factory.begin() as session:
        session.execute(delete(VehicleRow))
        session.add_all(vehicles)
    return vehicles
