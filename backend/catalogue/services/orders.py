# backend/catalogue/services/orders.py
import asyncio
import re
import time
from urllib.parse import quote
from typing import Dict, List

from sqlalchemy import or_
from sqlalchemy.orm import Session

from .engine import extractor, fetcher
from ..models import Catalogue, Order
from ..pipeline import BinaryFetcher, PageSubsetExtractor
from ..schemas.order import OrderCreate, OrderQuery
from ..utils.logging import service_logger

UNSAFE_FILENAME_CHARS = re.compile(r'[^\x20-\x7e]|["\\]')


class OrderValidationError(ValueError):
    pass


class CatalogueNotFound(LookupError):
    pass


def create_order(db: Session, order_in: OrderCreate) -> Order:
    """Persist an order after checking its pages against the catalogue"""
    catalogue = db.query(Catalogue).filter(Catalogue.id == order_in.catalogue_id).first()
    if not catalogue:
        raise CatalogueNotFound(f"Catalogue {order_in.catalogue_id} not found")

    pages = order_in.selected_pages
    out_of_range = [p for p in pages if p > catalogue.page_count]
    if out_of_range:
        raise OrderValidationError(
            f"Pages {out_of_range} are out of range for a {catalogue.page_count}-page catalogue"
        )

    customer = order_in.customer
    order = Order(
        catalogue_id=catalogue.id,
        catalogue_name=catalogue.name,
        customer_name=customer.name,
        customer_email=customer.email,
        customer_phone=customer.phone,
        company_name=customer.company_name,
        address=customer.address,
        notes=customer.notes,
        selected_pages=list(pages)
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


def list_orders(db: Session, query: OrderQuery) -> List[Order]:
    q = db.query(Order)
    if query.status is not None:
        q = q.filter(Order.status == query.status)
    if query.search:
        term = f"%{query.search.strip()}%"
        q = q.filter(or_(
            Order.customer_name.ilike(term),
            Order.customer_email.ilike(term),
            Order.catalogue_name.ilike(term)
        ))

    column = getattr(Order, query.sort_by)
    if query.sort_order == "asc":
        q = q.order_by(column.asc(), Order.id.asc())
    else:
        q = q.order_by(column.desc(), Order.id.desc())
    return q.all()


def download_filename(order: Order) -> str:
    return f"{order.customer_name}-selected-pages-{order.id}.pdf"


def content_disposition(filename: str) -> str:
    """Attachment header: ASCII-safe filename plus the exact UTF-8 name (RFC 5987)"""
    fallback = UNSAFE_FILENAME_CHARS.sub("_", filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


class FulfilmentService:
    """Builds the subset PDF for an order.

    Concurrent requests for the same order share one in-flight extraction.
    """

    def __init__(self, fetcher: BinaryFetcher, extractor: PageSubsetExtractor):
        self.fetcher = fetcher
        self.extractor = extractor
        self._inflight: Dict[int, asyncio.Task] = {}

    async def build(self, order_id: int, source_url: str, pages: List[int]) -> bytes:
        task = self._inflight.get(order_id)
        if task is None or task.done():
            task = asyncio.ensure_future(self._build(order_id, source_url, list(pages)))
            self._inflight[order_id] = task
            task.add_done_callback(lambda _: self._forget(order_id, task))
        else:
            service_logger.debug("Joining in-flight extraction", extra={"order_id": order_id})
        return await asyncio.shield(task)

    def _forget(self, order_id: int, task: asyncio.Task) -> None:
        if not task.cancelled():
            # Waiters may all have gone away; mark the failure as handled
            task.exception()
        if self._inflight.get(order_id) is task:
            del self._inflight[order_id]

    async def _build(self, order_id: int, source_url: str, pages: List[int]) -> bytes:
        start_time = time.perf_counter()
        data = await self.fetcher.fetch(source_url)
        result = await asyncio.to_thread(self.extractor.extract, data, pages)
        service_logger.info("Built fulfilment document", extra={
            "order_id": order_id,
            "page_count": len(pages),
            "byte_size": len(result),
            "execution_time_ms": round((time.perf_counter() - start_time) * 1000, 2)
        })
        return result


fulfilment_service = FulfilmentService(fetcher, extractor)
