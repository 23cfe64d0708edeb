from rentalhub.schemas.booking import BookingRequest, BookingResponse
from rentalhub.schemas.asset import AssetCreate, AssetUpdate, AssetResponse
from rentalhub.schemas.customer import CustomerCreate, CustomerUpdate, CustomerResponse
from rentalhub.schemas.error import ErrorResponse

__all__ = [
    "BookingRequest", "BookingResponse",
    "AssetCreate", "AssetUpdate", "AssetResponse",
    "CustomerCreate", "CustomerUpdate", "CustomerResponse",
    "ErrorResponse",
]
