"""
Pydantic schemas for booking request/response validation.

Responses reference the asset and customer by id and display name only,
never as nested objects.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from rentalhub.schemas.validators import blank_to_none


class BookingRequest(BaseModel):
    start_date: Optional[date] = None
    note: Optional[str] = Field(None, max_length=500)

    @field_validator("note")
    @classmethod
    def normalize_note(cls, value: Optional[str]) -> Optional[str]:
        return blank_to_none(value)


class BookingResponse(BaseModel):
    id: int
    start_date: date
    end_date: Optional[date]
    active: bool
    note: Optional[str]
    asset_id: int
    asset_name: Optional[str]
    customer_id: int
    customer_name: Optional[str]
