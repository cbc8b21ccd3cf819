# backend/catalogue/api/__init__.py
from .catalogues import router as catalogues_router
from .orders import router as orders_router
from .sessions import router as sessions_router
from .settings import router as settings_router

__all__ = ["catalogues_router", "orders_router", "sessions_router", "settings_router"]
