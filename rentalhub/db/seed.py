"""
Demo data for local development.

Inserts four customers, three assets and one active booking when the
database holds no assets yet. The booked asset is stored unavailable so the
seed respects the availability invariant.

Run on startup with SEED_DEMO_DATA=true, or directly:

    python -m rentalhub.db.seed
"""

import asyncio
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rentalhub.core.logging import get_logger, setup_logging
from rentalhub.db.session import AsyncSessionLocal
from rentalhub.models import Asset, Booking, Customer

logger = get_logger(__name__)

DEMO_CUSTOMERS = [
    ("Anna", "Karlsson", "anna.karlsson@example.com", "0701111111"),
    ("Johan", "Nilsson", "johan.nilsson@example.com", "0702222222"),
    ("Sara", "Persson", "sara.persson@example.com", "0703333333"),
    ("Mikael", "Berg", "mikael.berg@example.com", "0704444444"),
]

DEMO_ASSETS = [
    ("Drill", "Tools", Decimal("150.00")),
    ("Trailer", "Vehicles", Decimal("400.00")),
    ("Projector", "Electronics", Decimal("250.00")),
]


async def seed_demo_data(session: AsyncSession) -> bool:
    """Insert the demo rows. Returns False if the database was not empty."""
    existing = (await session.execute(select(func.count()).select_from(Asset))).scalar()
    if existing:
        logger.info("seed_skipped", reason="assets_exist", assets=existing)
        return False

    customers = [
        Customer(first_name=first, last_name=last, email=email, phone=phone)
        for first, last, email, phone in DEMO_CUSTOMERS
    ]
    assets = [
        Asset(name=name, category=category, daily_rate=rate, available=True)
        for name, category, rate in DEMO_ASSETS
    ]
    session.add_all([*customers, *assets])
    await session.flush()

    drill, first_customer = assets[0], customers[0]
    drill.available = False
    session.add(
        Booking(
            asset_id=drill.id,
            customer_id=first_customer.id,
            start_date=date(2025, 10, 1),
            active=True,
            note="For the renovation",
        )
    )
    await session.commit()

    logger.info("seed_completed", customers=len(customers), assets=len(assets), bookings=1)
    return True


async def main() -> None:
    setup_logging()
    async with AsyncSessionLocal() as session:
        await seed_demo_data(session)


if __name__ == "__main__":
    asyncio.run(main())
