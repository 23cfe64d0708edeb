"""
Customer endpoints.
"""

from fastapi import APIRouter, Depends, Response, status

from rentalhub.api.presenters import to_customer_response, to_customer_responses
from rentalhub.core.security import require_api_key
from rentalhub.schemas.customer import CustomerCreate, CustomerResponse, CustomerUpdate
from rentalhub.services.rental_service import RentalCoordinator, get_rental_coordinator

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.get("", response_model=list[CustomerResponse])
async def list_customers_endpoint(coordinator: RentalCoordinator = Depends(get_rental_coordinator)):
    customers = await coordinator.list_all_customers()
    histories = await coordinator.store.bookings_by_customer(c.id for c in customers)
    return to_customer_responses(customers, histories)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer_endpoint(customer_id: int, coordinator: RentalCoordinator = Depends(get_rental_coordinator)):
    customer = await coordinator.get_customer_by_id(customer_id)
    bookings = await coordinator.get_booking_history_for_customer(customer_id)
    return to_customer_response(customer, bookings)


@router.post(
    "",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_api_key)],
)
async def create_customer_endpoint(
    customer_data: CustomerCreate,
    coordinator: RentalCoordinator = Depends(get_rental_coordinator),
):
    """Register a customer. Returns 409 if the email is already registered."""
    customer = await coordinator.add_customer(customer_data)
    return to_customer_response(customer)


@router.put("/{customer_id}", response_model=CustomerResponse, dependencies=[Depends(require_api_key)])
async def update_customer_endpoint(
    customer_id: int,
    customer_data: CustomerUpdate,
    coordinator: RentalCoordinator = Depends(get_rental_coordinator),
):
    customer = await coordinator.update_customer(customer_id, customer_data)
    bookings = await coordinator.get_booking_history_for_customer(customer_id)
    return to_customer_response(customer, bookings)


@router.delete(
    "/{customer_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=[Depends(require_api_key)],
)
async def delete_customer_endpoint(
    customer_id: int,
    coordinator: RentalCoordinator = Depends(get_rental_coordinator),
):
    """Delete a customer. Refused with 409 while they have an active booking."""
    await coordinator.delete_customer(customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
