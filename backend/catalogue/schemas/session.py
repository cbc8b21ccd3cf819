# backend/catalogue/schemas/session.py
from typing import List, Literal

from pydantic import BaseModel

from .order import CustomerContact
from ..pipeline.types import LoaderState


class SessionCreate(BaseModel):
    catalogue_id: int
    device: Literal["desktop", "mobile"] = "desktop"


class RenderedPageInfo(BaseModel):
    page_number: int
    aspect_ratio: float
    width: int
    height: int
    image_url: str


class SessionState(BaseModel):
    session_id: str
    catalogue_id: int
    catalogue_name: str
    state: LoaderState
    loaded_count: int
    total_pages: int
    pages: List[RenderedPageInfo] = []
    selected_pages: List[int] = []


class BatchResult(BaseModel):
    state: LoaderState
    loaded_count: int
    total_pages: int
    pages: List[RenderedPageInfo] = []


class SelectionToggle(BaseModel):
    page_number: int


class SelectionState(BaseModel):
    selected_pages: List[int]
    size: int


class Checkout(BaseModel):
    customer: CustomerContact
