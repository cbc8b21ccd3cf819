# backend/catalogue/schemas/__init__.py
from .catalogue import Catalogue, CatalogueUpdate
from .order import Order, OrderCreate, OrderStatusUpdate, OrderQuery, CustomerContact
from .session import SessionCreate, SessionState, BatchResult, SelectionToggle, SelectionState, Checkout
from .settings import RecipientEmail

__all__ = [
    "Catalogue", "CatalogueUpdate",
    "Order", "OrderCreate", "OrderStatusUpdate", "OrderQuery", "CustomerContact",
    "SessionCreate", "SessionState", "BatchResult", "SelectionToggle", "SelectionState", "Checkout",
    "RecipientEmail"
]
