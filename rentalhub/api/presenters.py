"""
Conversion from ORM entities to wire records.

Bookings carry their asset and customer as id + display name; assets and
customers embed their booking history as flat BookingResponse records, so
no record ever re-embeds its owner.
"""

from typing import Iterable, Mapping, Optional, Sequence

from rentalhub.models.asset import Asset
from rentalhub.models.booking import Booking
from rentalhub.models.customer import Customer
from rentalhub.schemas.asset import AssetResponse
from rentalhub.schemas.booking import BookingResponse
from rentalhub.schemas.customer import CustomerResponse


def to_booking_response(booking: Booking) -> BookingResponse:
    asset = booking.asset
    customer = booking.customer
    return BookingResponse(
        id=booking.id,
        start_date=booking.start_date,
        end_date=booking.end_date,
        active=booking.active,
        note=booking.note,
        asset_id=booking.asset_id,
        asset_name=asset.name if asset is not None else None,
        customer_id=booking.customer_id,
        customer_name=customer.full_name if customer is not None else None,
    )


def to_booking_responses(bookings: Iterable[Booking]) -> list[BookingResponse]:
    return [to_booking_response(b) for b in bookings]


def to_asset_response(asset: Asset, history: Optional[Sequence[Booking]] = None) -> AssetResponse:
    return AssetResponse(
        id=asset.id,
        name=asset.name,
        category=asset.category,
        daily_rate=float(asset.daily_rate),
        available=asset.available,
        booking_history=to_booking_responses(history or []),
    )


def to_asset_responses(
    assets: Iterable[Asset],
    histories: Mapping[int, Sequence[Booking]],
) -> list[AssetResponse]:
    return [to_asset_response(a, histories.get(a.id)) for a in assets]


def to_customer_response(customer: Customer, bookings: Optional[Sequence[Booking]] = None) -> CustomerResponse:
    return CustomerResponse(
        id=customer.id,
        first_name=customer.first_name,
        last_name=customer.last_name,
        email=customer.email,
        phone=customer.phone,
        bookings=to_booking_responses(bookings or []),
    )


def to_customer_responses(
    customers: Iterable[Customer],
    histories: Mapping[int, Sequence[Booking]],
) -> list[CustomerResponse]:
    return [to_customer_response(c, histories.get(c.id)) for c in customers]
