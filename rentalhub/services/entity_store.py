"""
Entity store: data access for assets, customers and bookings.

One EntityStore wraps one AsyncSession, i.e. one unit of work. It holds no
business rules; the rental coordinator decides what may be written and the
store only reads, writes and reports storage failures.

Row locking:
  find_asset_by_id(..., for_update=True) issues SELECT ... FOR UPDATE, and
  find_booking_by_id(..., for_update=True) locks the booking row. Both
  re-read the row even when it is already in the identity map.
  On PostgreSQL this serialises every booking open/close for the same asset
  until the surrounding transaction commits. SQLite ignores the clause; it
  serialises writers at the database level anyway.

Commit and constraint violations:
  Mutating coordinator operations end with commit(), so the transaction is
  settled before a response is built. IntegrityError from a flush or commit
  (duplicate email, second active booking for an asset) rolls the unit of
  work back and surfaces as StorageConflict. Other storage errors roll back
  and propagate unchanged.
"""

from collections import defaultdict
from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rentalhub.core.exceptions import NotFound, StorageConflict
from rentalhub.core.logging import get_logger
from rentalhub.models.asset import Asset
from rentalhub.models.booking import Booking
from rentalhub.models.customer import Customer

logger = get_logger(__name__)


class EntityStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def find_asset_by_id(self, asset_id: int, *, for_update: bool = False) -> Asset:
        query = select(Asset).where(Asset.id == asset_id)
        if for_update:
            # re-read the locked row even if the asset is already in the identity map
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        asset = result.scalar_one_or_none()
        if not asset:
            raise NotFound(f"Asset {asset_id} not found")
        return asset

    async def find_customer_by_id(self, customer_id: int) -> Customer:
        result = await self.db.execute(select(Customer).where(Customer.id == customer_id))
        customer = result.scalar_one_or_none()
        if not customer:
            raise NotFound(f"Customer {customer_id} not found")
        return customer

    async def find_booking_by_id(self, booking_id: int, *, for_update: bool = False) -> Booking:
        query = select(Booking).where(Booking.id == booking_id)
        if for_update:
            query = query.with_for_update(of=Booking).execution_options(populate_existing=True)
        result = await self.db.execute(query)
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFound(f"Booking {booking_id} not found")
        return booking

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def list_assets(self) -> list[Asset]:
        result = await self.db.execute(select(Asset).order_by(Asset.id))
        return list(result.scalars().all())

    async def list_available_assets(self) -> list[Asset]:
        result = await self.db.execute(
            select(Asset).where(Asset.available.is_(True)).order_by(Asset.id)
        )
        return list(result.scalars().all())

    async def list_customers(self) -> list[Customer]:
        result = await self.db.execute(select(Customer).order_by(Customer.id))
        return list(result.scalars().all())

    async def list_bookings(self) -> list[Booking]:
        result = await self.db.execute(select(Booking).order_by(Booking.id))
        return list(result.scalars().all())

    async def list_bookings_for_asset(self, asset_id: int) -> list[Booking]:
        """Booking history for an asset, newest start date first."""
        result = await self.db.execute(
            select(Booking)
            .where(Booking.asset_id == asset_id)
            .order_by(Booking.start_date.desc(), Booking.id.desc())
        )
        return list(result.scalars().all())

    async def list_bookings_for_customer(self, customer_id: int) -> list[Booking]:
        """Booking history for a customer, newest start date first."""
        result = await self.db.execute(
            select(Booking)
            .where(Booking.customer_id == customer_id)
            .order_by(Booking.start_date.desc(), Booking.id.desc())
        )
        return list(result.scalars().all())

    async def bookings_by_asset(self, asset_ids: Iterable[int]) -> dict[int, list[Booking]]:
        """Histories for many assets in one query, keyed by asset id."""
        return await self._group_bookings(Booking.asset_id, asset_ids)

    async def bookings_by_customer(self, customer_ids: Iterable[int]) -> dict[int, list[Booking]]:
        return await self._group_bookings(Booking.customer_id, customer_ids)

    async def _group_bookings(self, column, ids: Iterable[int]) -> dict[int, list[Booking]]:
        ids = list(ids)
        grouped: dict[int, list[Booking]] = defaultdict(list)
        if not ids:
            return grouped
        result = await self.db.execute(
            select(Booking)
            .where(column.in_(ids))
            .order_by(Booking.start_date.desc(), Booking.id.desc())
        )
        key = column.key
        for booking in result.scalars().all():
            grouped[getattr(booking, key)].append(booking)
        return grouped

    # ------------------------------------------------------------------
    # Existence checks
    # ------------------------------------------------------------------

    async def exists_active_booking_for_asset(self, asset_id: int) -> bool:
        return await self._exists(
            select(Booking.id).where(Booking.asset_id == asset_id, Booking.active.is_(True))
        )

    async def exists_active_booking_for_customer(self, customer_id: int) -> bool:
        return await self._exists(
            select(Booking.id).where(Booking.customer_id == customer_id, Booking.active.is_(True))
        )

    async def exists_customer_with_email(self, email: str) -> bool:
        """Exact, case-sensitive match on the stored address."""
        return await self._exists(select(Customer.id).where(Customer.email == email))

    async def _exists(self, query) -> bool:
        result = await self.db.execute(select(query.exists()))
        return bool(result.scalar())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save(self, *entities) -> None:
        """Add entities to the unit of work and flush them together."""
        self.db.add_all(entities)
        await self.flush()
        for entity in entities:
            await self.db.refresh(entity)

    async def delete(self, entity) -> None:
        await self.db.delete(entity)
        await self.flush()

    async def delete_bookings_for_asset(self, asset_id: int) -> int:
        result = await self.db.execute(delete(Booking).where(Booking.asset_id == asset_id))
        return result.rowcount

    async def delete_bookings_for_customer(self, customer_id: int) -> int:
        result = await self.db.execute(delete(Booking).where(Booking.customer_id == customer_id))
        return result.rowcount

    async def flush(self) -> None:
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.rollback()
            logger.warning("storage_constraint_violation", error=str(e.orig))
            raise StorageConflict("The change conflicts with existing data") from e

    async def rollback(self) -> None:
        await self.db.rollback()

    async def commit(self) -> None:
        """End the unit of work. Any failure rolls it back before propagating."""
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.rollback()
            logger.warning("storage_constraint_violation", error=str(e.orig))
            raise StorageConflict("The change conflicts with existing data") from e
        except SQLAlchemyError as e:
            await self.rollback()
            logger.error("storage_commit_failed", error=str(e))
            raise
