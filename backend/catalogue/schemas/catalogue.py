# backend/catalogue/schemas/catalogue.py
from datetime import datetime
from typing import Optional
from pydantic import Field
from .base import BaseSchema

class CatalogueBase(BaseSchema):
    name: str

class CatalogueUpdate(BaseSchema):
    name: Optional[str] = Field(default=None, min_length=1)
    cover_page: Optional[int] = None

class Catalogue(CatalogueBase):
    id: int
    file_url: str
    file_size: int
    page_count: int
    cover_page: int = 1
    uploaded_at: Optional[datetime] = None
