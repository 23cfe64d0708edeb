"""
Pydantic schemas for asset request/response validation.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from rentalhub.schemas.booking import BookingResponse
from rentalhub.schemas.validators import not_blank


class AssetCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, examples=["Drill"])
    category: str = Field(..., min_length=1, max_length=100, examples=["Tools"])
    daily_rate: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, examples=[150.0])

    @field_validator("name", "category")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return not_blank(value)

    @field_validator("name")
    @classmethod
    def name_length_after_strip(cls, value: str) -> str:
        if len(value) < 2:
            raise ValueError("must be between 2 and 100 characters")
        return value


class AssetUpdate(AssetCreate):
    # None keeps the current flag
    available: Optional[bool] = None


class AssetResponse(BaseModel):
    id: int
    name: str
    category: str
    daily_rate: float
    available: bool
    booking_history: list[BookingResponse] = []
