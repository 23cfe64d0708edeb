"""
Asset endpoints. Listings are cached in Redis and invalidated on writes.
"""

from fastapi import APIRouter, Depends, Response, status

from rentalhub.api.presenters import to_asset_response, to_asset_responses
from rentalhub.core.security import require_api_key
from rentalhub.schemas.asset import AssetCreate, AssetResponse, AssetUpdate
from rentalhub.services.cache_service import get_cached_assets, invalidate_asset_cache, set_cached_assets
from rentalhub.services.rental_service import RentalCoordinator, get_rental_coordinator

router = APIRouter(prefix="/assets", tags=["Assets"])


async def _list_assets(coordinator: RentalCoordinator, scope: str) -> list[AssetResponse]:
    cached = await get_cached_assets(scope)
    if cached is not None:
        return [AssetResponse(**item) for item in cached]

    if scope == "available":
        assets = await coordinator.list_available_assets()
    else:
        assets = await coordinator.list_all_assets()
    histories = await coordinator.store.bookings_by_asset(a.id for a in assets)
    response = to_asset_responses(assets, histories)

    await set_cached_assets(scope, [item.model_dump(mode="json") for item in response])
    return response


@router.get("", response_model=list[AssetResponse])
async def list_assets_endpoint(coordinator: RentalCoordinator = Depends(get_rental_coordinator)):
    """All assets with their booking history."""
    return await _list_assets(coordinator, "all")


@router.get("/available", response_model=list[AssetResponse])
async def list_available_assets_endpoint(coordinator: RentalCoordinator = Depends(get_rental_coordinator)):
    """Assets that can be booked right now."""
    return await _list_assets(coordinator, "available")


@router.get("/{asset_id}", response_model=AssetResponse)
async def get_asset_endpoint(asset_id: int, coordinator: RentalCoordinator = Depends(get_rental_coordinator)):
    asset = await coordinator.get_asset_by_id(asset_id)
    history = await coordinator.get_booking_history_for_asset(asset_id)
    return to_asset_response(asset, history)


@router.post(
    "",
    response_model=AssetResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_api_key)],
)
async def create_asset_endpoint(
    asset_data: AssetCreate,
    coordinator: RentalCoordinator = Depends(get_rental_coordinator),
):
    """Register a new asset. New assets start out available."""
    asset = await coordinator.add_asset(asset_data)
    await invalidate_asset_cache()
    return to_asset_response(asset)


@router.put("/{asset_id}", response_model=AssetResponse, dependencies=[Depends(require_api_key)])
async def update_asset_endpoint(
    asset_id: int,
    asset_data: AssetUpdate,
    coordinator: RentalCoordinator = Depends(get_rental_coordinator),
):
    """Overwrite name, category, daily rate and (optionally) availability."""
    asset = await coordinator.update_asset(asset_id, asset_data)
    await invalidate_asset_cache()
    history = await coordinator.get_booking_history_for_asset(asset_id)
    return to_asset_response(asset, history)


@router.delete(
    "/{asset_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=[Depends(require_api_key)],
)
async def delete_asset_endpoint(asset_id: int, coordinator: RentalCoordinator = Depends(get_rental_coordinator)):
    """Delete an asset. Refused with 409 while it has an active booking."""
    await coordinator.delete_asset(asset_id)
    await invalidate_asset_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
