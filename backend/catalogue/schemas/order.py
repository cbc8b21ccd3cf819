# backend/catalogue/schemas/order.py
import re
from typing import List, Literal, Optional

from pydantic import BaseModel, field_validator

from .base import BaseSchema, TimestampMixin
from ..models.order import OrderStatus

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CustomerContact(BaseModel):
    name: str
    email: str
    phone: str
    company_name: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name", "phone")
    @classmethod
    def required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("email")
    @classmethod
    def valid_email(cls, value: str) -> str:
        value = value.strip()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("must be a valid e-mail address")
        return value


class OrderCreate(BaseModel):
    catalogue_id: int
    selected_pages: List[int]
    customer: CustomerContact

    @field_validator("selected_pages")
    @classmethod
    def normalise_pages(cls, value: List[int]) -> List[int]:
        """Sort ascending and drop duplicates"""
        pages = sorted(set(value))
        if not pages:
            raise ValueError("at least one page must be selected")
        if pages[0] < 1:
            raise ValueError("page numbers start at 1")
        return pages


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class Order(BaseSchema, TimestampMixin):
    id: int
    catalogue_id: int
    catalogue_name: str
    customer_name: str
    customer_email: str
    customer_phone: str
    company_name: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    selected_pages: List[int]
    status: OrderStatus


class OrderQuery(BaseModel):
    status: Optional[OrderStatus] = None
    search: Optional[str] = None
    sort_by: Literal["created_at", "customer_name", "status"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"
