"""Models package for database models."""

from app.models.purchase import PurchaseRecord
from app.models.admin_device import AdminDevice
from app.models.product import Product

__all__ = [
    "PurchaseRecord",
    "AdminDevice",
    "Product",
]
