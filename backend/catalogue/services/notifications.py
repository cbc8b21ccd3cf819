# backend/catalogue/services/notifications.py
import html
from datetime import datetime

import httpx
from sqlalchemy.orm import Session

from ..config import settings
from ..models import AdminSetting, Order, RECIPIENT_EMAIL_KEY
from ..pipeline import NotificationFailure
from ..utils.logging import service_logger


def get_recipient_email(db: Session) -> str:
    """Address order notifications go to, falling back to the configured default"""
    setting = db.query(AdminSetting).filter(AdminSetting.setting_key == RECIPIENT_EMAIL_KEY).first()
    return setting.setting_value if setting else settings.DEFAULT_RECIPIENT_EMAIL


def order_payload(order: Order) -> dict:
    """Detach the fields a notification needs from the ORM object"""
    return {
        "order_id": order.id,
        "catalogue_name": order.catalogue_name,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "customer_phone": order.customer_phone,
        "selected_pages": list(order.selected_pages),
        "created_at": order.created_at or datetime.now(),
    }


def render_order_email(payload: dict) -> str:
    esc = lambda value: html.escape(str(value))
    pages = payload["selected_pages"]
    created_at = payload["created_at"]
    return (
        "<h2>New Catalogue Order Received</h2>"
        f"<p><strong>Order ID:</strong> {esc(payload['order_id'])}</p>"
        "<p><strong>Customer Details:</strong></p>"
        "<ul>"
        f"<li><strong>Name:</strong> {esc(payload['customer_name'])}</li>"
        f"<li><strong>Email:</strong> {esc(payload['customer_email'])}</li>"
        f"<li><strong>Phone:</strong> {esc(payload['customer_phone'] or 'Not provided')}</li>"
        "</ul>"
        f"<p><strong>Catalogue:</strong> {esc(payload['catalogue_name'] or 'Unknown')}</p>"
        f"<p><strong>Selected Pages:</strong> {esc(', '.join(str(p) for p in pages))}</p>"
        f"<p><strong>Total Items:</strong> {len(pages)}</p>"
        f"<p><strong>Order Date:</strong> {esc(created_at.strftime('%Y-%m-%d %H:%M:%S'))}</p>"
    )


class NotificationSender:
    """Posts order notifications to a Resend-compatible e-mail API"""

    def __init__(self, api_url: str, api_key: str | None, sender: str, client: httpx.AsyncClient | None = None):
        self.api_url = api_url
        self.api_key = api_key
        self.sender = sender
        self._client = client

    async def send(self, payload: dict, recipient: str) -> bool:
        """Send one notification; returns False when sending is not configured"""
        if not self.api_key:
            service_logger.info("E-mail API key not configured, skipping order notification", extra={
                "order_id": payload["order_id"]
            })
            return False

        message = {
            "from": self.sender,
            "to": [recipient],
            "subject": f"New Order from {payload['customer_name']}",
            "html": render_order_email(payload),
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            if self._client is not None:
                response = await self._client.post(self.api_url, json=message, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=30.0) as client:
                    response = await client.post(self.api_url, json=message, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NotificationFailure(f"Notification for order {payload['order_id']} failed: {e}") from e

        service_logger.info("Order notification sent", extra={
            "order_id": payload["order_id"],
            "recipient": recipient
        })
        return True


notification_sender = NotificationSender(
    api_url=settings.EMAIL_API_URL,
    api_key=settings.EMAIL_API_KEY,
    sender=settings.EMAIL_FROM
)


async def dispatch_order_notification(payload: dict, recipient: str) -> None:
    """Background task: notification problems are logged, never raised"""
    try:
        await notification_sender.send(payload, recipient)
    except NotificationFailure as e:
        service_logger.error("Order notification failed", extra={
            "order_id": payload["order_id"],
            "error": e.message
        })
    except Exception as e:
        service_logger.error("Unexpected error sending order notification", extra={
            "order_id": payload["order_id"],
            "error": str(e)
        }, exc_info=True)
