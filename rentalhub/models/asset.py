"""
Asset model: a rentable piece of equipment.

`available` is denormalized from the bookings table: it is false exactly
when an active booking references the asset. The rental coordinator flips
it in the same unit of work that opens or closes the booking.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Index, Integer, Numeric, String

from rentalhub.db.base import Base, TimestampMixin


class Asset(Base, TimestampMixin):
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    category = Column(String(100), nullable=False)
    daily_rate = Column(Numeric(10, 2), nullable=False)
    available = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("daily_rate > 0", name="check_asset_daily_rate_positive"),
        # GET /assets/available filters on this flag
        Index("ix_assets_available", "available"),
    )

    def __repr__(self) -> str:
        return f"<Asset(id={self.id}, name={self.name}, available={self.available})>"
