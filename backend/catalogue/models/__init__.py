# backend/catalogue/models/__init__.py
from ..database import Base
from .catalogue import Catalogue
from .order import Order, OrderStatus
from .admin_setting import AdminSetting, RECIPIENT_EMAIL_KEY

__all__ = [
    "Base",
    "Catalogue",
    "Order",
    "OrderStatus",
    "AdminSetting",
    "RECIPIENT_EMAIL_KEY"
]
