"""
Pydantic schemas for customer request/response validation.
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from rentalhub.schemas.booking import BookingResponse
from rentalhub.schemas.validators import blank_to_none, not_blank


class CustomerCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, value: str) -> str:
        return not_blank(value)

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: Optional[str]) -> Optional[str]:
        return blank_to_none(value)


class CustomerUpdate(CustomerCreate):
    pass


class CustomerResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str]
    bookings: list[BookingResponse] = []
