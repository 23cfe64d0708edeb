"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from rentalhub.api.routes import assets, customers, rentals
from rentalhub.schemas.error import ErrorResponse

# Documented error envelope for every /api route
ERROR_RESPONSES = {
    code: {"model": ErrorResponse}
    for code in (400, 401, 404, 409, 500)
}

api_router = APIRouter(prefix="/api", responses=ERROR_RESPONSES)
api_router.include_router(assets.router)
api_router.include_router(customers.router)
api_router.include_router(rentals.router)
