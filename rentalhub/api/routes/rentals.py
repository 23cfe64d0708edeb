"""
Booking endpoints: open, close, delete and history.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Response, status

from rentalhub.api.presenters import to_booking_response, to_booking_responses
from rentalhub.core.security import require_api_key
from rentalhub.schemas.booking import BookingRequest, BookingResponse
from rentalhub.services.cache_service import invalidate_asset_cache
from rentalhub.services.rental_service import RentalCoordinator, get_rental_coordinator

router = APIRouter(prefix="/rentals", tags=["Rentals"])


@router.post(
    "/book/{asset_id}/customer/{customer_id}",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_api_key)],
)
async def create_booking_endpoint(
    asset_id: int,
    customer_id: int,
    booking_data: Optional[BookingRequest] = Body(None),
    coordinator: RentalCoordinator = Depends(get_rental_coordinator),
):
    """
    Book an asset for a customer.

    The body is optional; start_date defaults to today. Returns 404 for an
    unknown asset or customer and 409 if the asset is already rented out.
    """
    booking_data = booking_data or BookingRequest()
    booking = await coordinator.register_booking(
        asset_id,
        customer_id,
        start_date=booking_data.start_date,
        note=booking_data.note,
    )
    await invalidate_asset_cache()
    return to_booking_response(booking)


@router.get("", response_model=list[BookingResponse])
async def list_bookings_endpoint(coordinator: RentalCoordinator = Depends(get_rental_coordinator)):
    return to_booking_responses(await coordinator.list_all_bookings())


@router.get("/history/asset/{asset_id}", response_model=list[BookingResponse])
async def asset_history_endpoint(asset_id: int, coordinator: RentalCoordinator = Depends(get_rental_coordinator)):
    """Bookings for an asset, newest start date first."""
    return to_booking_responses(await coordinator.get_booking_history_for_asset(asset_id))


@router.get("/history/customer/{customer_id}", response_model=list[BookingResponse])
async def customer_history_endpoint(
    customer_id: int,
    coordinator: RentalCoordinator = Depends(get_rental_coordinator),
):
    """Bookings for a customer, newest start date first."""
    return to_booking_responses(await coordinator.get_booking_history_for_customer(customer_id))


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking_endpoint(booking_id: int, coordinator: RentalCoordinator = Depends(get_rental_coordinator)):
    return to_booking_response(await coordinator.get_booking_by_id(booking_id))


@router.put("/return/{booking_id}", response_model=BookingResponse, dependencies=[Depends(require_api_key)])
async def return_booking_endpoint(
    booking_id: int,
    coordinator: RentalCoordinator = Depends(get_rental_coordinator),
):
    """Close an active booking; the asset becomes available again."""
    booking = await coordinator.close_booking(booking_id)
    await invalidate_asset_cache()
    return to_booking_response(booking)


@router.delete(
    "/{booking_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=[Depends(require_api_key)],
)
async def delete_booking_endpoint(booking_id: int, coordinator: RentalCoordinator = Depends(get_rental_coordinator)):
    """Delete a closed booking. Active bookings must be returned first (409)."""
    await coordinator.delete_booking(booking_id)
    await invalidate_asset_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
