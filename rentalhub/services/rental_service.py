"""
Rental coordinator: every cross-entity rule lives here.

BOOKING LIFECYCLE
=================

An asset's `available` flag and the existence of an active booking for
that asset are one logical resource. They are written together, in the same
unit of work, by exactly two operations:

  register_booking:  available True -> False, booking created active
  close_booking:     available False -> True, booking active -> closed

Concurrency:
  Both operations lock the asset row (SELECT ... FOR UPDATE) before reading
  the flag, so two concurrent registrations for one asset are serialised:
  the second one waits for the first to commit and then sees
  available=False. close_booking re-reads the booking after taking the
  lock, so a close racing another close (or a close followed by a new
  registration) sees the committed state and fails with Conflict. The
  partial unique index on active bookings is the final safety net; a
  violation surfaces as StorageConflict.

  Both writes go out in a single flush and every mutating operation commits
  before it returns, so the route only builds a response for a settled
  transaction. If the flush or commit fails the session is rolled back, so
  neither an unavailable asset without a booking nor an available asset
  with an active booking can be committed.

Deletion guards:
  Assets and customers with an active booking cannot be deleted. Active
  bookings cannot be deleted either; they must be closed first.

The coordinator raises typed errors (InvalidInput, NotFound, Conflict) and
never retries.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from rentalhub.core.exceptions import Conflict, InvalidInput, NotFound, RentalError
from rentalhub.core.logging import get_logger
from rentalhub.core.metrics import booking_latency, record_booking_operation, record_entity_operation
from rentalhub.db.session import get_db
from rentalhub.models.asset import Asset
from rentalhub.models.booking import Booking
from rentalhub.models.customer import Customer
from rentalhub.schemas.asset import AssetCreate, AssetUpdate
from rentalhub.schemas.customer import CustomerCreate, CustomerUpdate
from rentalhub.services.entity_store import EntityStore

logger = get_logger(__name__)


def _status_label(exc: Exception) -> str:
    if isinstance(exc, NotFound):
        return "not_found"
    if isinstance(exc, Conflict):
        return "conflict"
    return "error"


class RentalCoordinator:

    def __init__(self, store: EntityStore, today: Callable[[], date] = date.today):
        self.store = store
        self.today = today

    # ======================================================
    # Assets
    # ======================================================

    async def list_all_assets(self) -> list[Asset]:
        return await self.store.list_assets()

    async def list_available_assets(self) -> list[Asset]:
        return await self.store.list_available_assets()

    async def get_asset_by_id(self, asset_id: int) -> Asset:
        return await self.store.find_asset_by_id(asset_id)

    async def add_asset(self, data: AssetCreate) -> Asset:
        """Create an asset. New assets are always available."""
        name, category = _require_text(data.name, "name"), _require_text(data.category, "category")
        daily_rate = _require_positive(data.daily_rate)

        asset = Asset(name=name, category=category, daily_rate=daily_rate, available=True)
        await self.store.save(asset)
        await self.store.commit()

        record_entity_operation("asset", "create")
        logger.info("asset_created", asset_id=asset.id, name=asset.name)
        return asset

    async def update_asset(self, asset_id: int, data: AssetUpdate) -> Asset:
        """
        Overwrite name, category, daily rate and availability.

        The availability flag may not be set against the booking state:
        making a rented asset available, or an idle asset unavailable,
        raises Conflict. Leaving `available` unset keeps the current value.
        """
        asset = await self.store.find_asset_by_id(asset_id, for_update=True)
        name, category = _require_text(data.name, "name"), _require_text(data.category, "category")
        daily_rate = _require_positive(data.daily_rate)

        if data.available is not None and data.available != asset.available:
            has_active = await self.store.exists_active_booking_for_asset(asset_id)
            if data.available == has_active:
                logger.warning(
                    "asset_update_rejected",
                    asset_id=asset_id,
                    requested_available=data.available,
                    active_booking=has_active,
                )
                state = "has an active booking" if has_active else "has no active booking"
                raise Conflict(f"Asset {asset_id} {state}; availability cannot be set to {data.available}")
            asset.available = data.available

        asset.name = name
        asset.category = category
        asset.daily_rate = daily_rate
        await self.store.save(asset)
        await self.store.commit()

        record_entity_operation("asset", "update")
        logger.info("asset_updated", asset_id=asset.id)
        return asset

    async def delete_asset(self, asset_id: int) -> None:
        """Delete an asset together with its closed booking history."""
        asset = await self.store.find_asset_by_id(asset_id, for_update=True)
        if await self.store.exists_active_booking_for_asset(asset_id):
            logger.warning("asset_delete_rejected", asset_id=asset_id, reason="active_booking")
            raise Conflict(f"Cannot delete asset {asset_id}: it has an active booking")

        removed = await self.store.delete_bookings_for_asset(asset_id)
        await self.store.delete(asset)
        await self.store.commit()

        record_entity_operation("asset", "delete")
        logger.info("asset_deleted", asset_id=asset_id, bookings_removed=removed)

    # ======================================================
    # Customers
    # ======================================================

    async def list_all_customers(self) -> list[Customer]:
        return await self.store.list_customers()

    async def get_customer_by_id(self, customer_id: int) -> Customer:
        return await self.store.find_customer_by_id(customer_id)

    async def add_customer(self, data: CustomerCreate) -> Customer:
        """Register a customer. Emails are unique, compared case-sensitively."""
        email = (data.email or "").strip()
        if not email:
            raise InvalidInput("Email is required")

        if await self.store.exists_customer_with_email(email):
            logger.warning("customer_create_rejected", reason="email_exists", email=email)
            raise Conflict("Email already registered")

        customer = Customer(
            first_name=_require_text(data.first_name, "first_name"),
            last_name=_require_text(data.last_name, "last_name"),
            email=email,
            phone=data.phone,
        )
        await self.store.save(customer)
        await self.store.commit()

        record_entity_operation("customer", "create")
        logger.info("customer_created", customer_id=customer.id)
        return customer

    async def update_customer(self, customer_id: int, data: CustomerUpdate) -> Customer:
        """
        Overwrite name, email and phone.

        Email uniqueness is not re-checked here; the unique index on
        customers.email still rejects a collision with StorageConflict.
        """
        customer = await self.store.find_customer_by_id(customer_id)
        email = (data.email or "").strip()
        if not email:
            raise InvalidInput("Email is required")

        customer.first_name = _require_text(data.first_name, "first_name")
        customer.last_name = _require_text(data.last_name, "last_name")
        customer.email = email
        customer.phone = data.phone
        await self.store.save(customer)
        await self.store.commit()

        record_entity_operation("customer", "update")
        logger.info("customer_updated", customer_id=customer.id)
        return customer

    async def delete_customer(self, customer_id: int) -> None:
        customer = await self.store.find_customer_by_id(customer_id)
        if await self.store.exists_active_booking_for_customer(customer_id):
            logger.warning("customer_delete_rejected", customer_id=customer_id, reason="active_booking")
            raise Conflict(f"Cannot delete customer {customer_id}: they have an active booking")

        removed = await self.store.delete_bookings_for_customer(customer_id)
        await self.store.delete(customer)
        await self.store.commit()

        record_entity_operation("customer", "delete")
        logger.info("customer_deleted", customer_id=customer_id, bookings_removed=removed)

    # ======================================================
    # Bookings
    # ======================================================

    async def list_all_bookings(self) -> list[Booking]:
        return await self.store.list_bookings()

    async def get_booking_by_id(self, booking_id: int) -> Booking:
        return await self.store.find_booking_by_id(booking_id)

    async def get_booking_history_for_asset(self, asset_id: int) -> list[Booking]:
        return await self.store.list_bookings_for_asset(asset_id)

    async def get_booking_history_for_customer(self, customer_id: int) -> list[Booking]:
        return await self.store.list_bookings_for_customer(customer_id)

    async def register_booking(
        self,
        asset_id: int,
        customer_id: int,
        start_date: Optional[date] = None,
        note: Optional[str] = None,
    ) -> Booking:
        """
        Open a booking and mark the asset unavailable.

        Both the availability flag and the active-booking set are consulted:
        they are maintained independently and either one alone can be stale.
        """
        with booking_latency.labels(operation="register").time():
            try:
                booking = await self._register_booking(asset_id, customer_id, start_date, note)
            except RentalError as e:
                record_booking_operation("register", _status_label(e))
                raise
        record_booking_operation("register", "success")
        return booking

    async def _register_booking(
        self,
        asset_id: int,
        customer_id: int,
        start_date: Optional[date],
        note: Optional[str],
    ) -> Booking:
        # Step 1: Lock the asset row for the rest of the transaction
        asset = await self.store.find_asset_by_id(asset_id, for_update=True)

        if not asset.available:
            logger.warning("booking_rejected", asset_id=asset_id, reason="asset_unavailable")
            raise Conflict(f"Asset {asset_id} is already rented out")

        customer = await self.store.find_customer_by_id(customer_id)

        # Step 2: The flag said available; the bookings table must agree
        if await self.store.exists_active_booking_for_asset(asset_id):
            logger.warning("booking_rejected", asset_id=asset_id, reason="active_booking_exists")
            raise Conflict(f"Asset {asset_id} already has an active booking")

        # Step 3: Write the booking and the flag together
        booking = Booking(
            asset_id=asset.id,
            customer_id=customer.id,
            start_date=start_date or self.today(),
            end_date=None,
            active=True,
            note=note,
        )
        asset.available = False
        await self.store.save(asset, booking)
        await self.store.commit()

        logger.info(
            "booking_registered",
            booking_id=booking.id,
            asset_id=asset.id,
            customer_id=customer.id,
            start_date=booking.start_date.isoformat(),
        )
        return booking

    async def close_booking(self, booking_id: int) -> Booking:
        """Close an active booking and make its asset available again."""
        with booking_latency.labels(operation="close").time():
            try:
                booking = await self._close_booking(booking_id)
            except RentalError as e:
                record_booking_operation("close", _status_label(e))
                raise
        record_booking_operation("close", "success")
        return booking

    async def _close_booking(self, booking_id: int) -> Booking:
        # Step 1: Find which asset to lock; a booking's asset_id never changes
        booking = await self.store.find_booking_by_id(booking_id)
        asset = await self.store.find_asset_by_id(booking.asset_id, for_update=True)

        # Step 2: Re-read the booking under the lock; an earlier close may have committed
        booking = await self.store.find_booking_by_id(booking_id, for_update=True)
        if not booking.active:
            logger.warning("booking_close_rejected", booking_id=booking_id, reason="already_closed")
            raise Conflict(f"Booking {booking_id} is already closed")

        # Step 3: Close the booking and free the asset together
        booking.active = False
        booking.end_date = self.today()
        asset.available = True
        await self.store.save(asset, booking)
        await self.store.commit()

        logger.info(
            "booking_closed",
            booking_id=booking.id,
            asset_id=asset.id,
            end_date=booking.end_date.isoformat(),
        )
        return booking

    async def delete_booking(self, booking_id: int) -> None:
        """Delete a closed booking. Asset availability is left alone."""
        booking = await self.store.find_booking_by_id(booking_id)
        if booking.active:
            record_booking_operation("delete", "conflict")
            logger.warning("booking_delete_rejected", booking_id=booking_id, reason="still_active")
            raise Conflict(f"Cannot delete active booking {booking_id}; close it first")

        await self.store.delete(booking)
        await self.store.commit()
        record_booking_operation("delete", "success")
        logger.info("booking_deleted", booking_id=booking_id)


def _require_text(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise InvalidInput(f"{field} must not be blank", details={field: "must not be blank"})
    return value


def _require_positive(rate: Optional[Decimal]) -> Decimal:
    if rate is None or rate <= 0:
        raise InvalidInput("daily_rate must be greater than zero", details={"daily_rate": "must be greater than zero"})
    return rate


async def get_rental_coordinator(db: AsyncSession = Depends(get_db)) -> RentalCoordinator:
    return RentalCoordinator(EntityStore(db))
