from rentalhub.models.asset import Asset
from rentalhub.models.customer import Customer
from rentalhub.models.booking import Booking

__all__ = ["Asset", "Customer", "Booking"]
