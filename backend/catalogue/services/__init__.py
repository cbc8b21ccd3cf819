# backend/catalogue/services/__init__.py
from .catalogues import catalogue_service
from .cleanup import cleanup_service
from .notifications import notification_sender
from .orders import fulfilment_service
from .sessions import session_registry

__all__ = ["catalogue_service", "cleanup_service", "notification_sender", "fulfilment_service", "session_registry"]
