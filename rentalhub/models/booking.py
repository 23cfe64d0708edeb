"""
Booking model linking one asset to one customer.

Key design decisions:
- asset_id / customer_id are the owning references; the many-to-one
  relationships below are read-only and only resolve names for responses.
  Assets and customers hold no booking collections.
- Partial unique index on asset_id for active rows: at most one active
  booking per asset, even if two transactions slip past the coordinator.
- end_date stays NULL until the booking is closed.
"""

from sqlalchemy import Boolean, Column, Date, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import relationship

from rentalhub.db.base import Base, TimestampMixin


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    note = Column(String(500), nullable=True)

    asset = relationship("Asset", lazy="joined", innerjoin=True, viewonly=True)
    customer = relationship("Customer", lazy="joined", innerjoin=True, viewonly=True)

    __table_args__ = (
        Index(
            "uq_bookings_active_asset",
            "asset_id",
            unique=True,
            postgresql_where=text("active"),
            sqlite_where=text("active = 1"),
        ),
        # History queries: WHERE asset_id = ? ORDER BY start_date DESC
        Index("ix_bookings_asset_start", "asset_id", "start_date"),
        Index("ix_bookings_customer_start", "customer_id", "start_date"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, asset={self.asset_id}, customer={self.customer_id}, active={self.active})>"
