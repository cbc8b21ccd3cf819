# backend/catalogue/api/orders.py
import time
from typing import List, Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from .errors import pipeline_http_error
from ..database import get_db
from ..models.order import Order, OrderStatus
from ..pipeline import PipelineError
from ..schemas.order import Order as OrderSchema, OrderCreate, OrderQuery, OrderStatusUpdate
from ..services.notifications import dispatch_order_notification, get_recipient_email, order_payload
from ..services.orders import (
    CatalogueNotFound,
    OrderValidationError,
    content_disposition,
    create_order,
    download_filename,
    fulfilment_service,
    list_orders,
)
from ..utils.logging import api_logger

router = APIRouter(prefix="/api/orders", tags=["orders"])


def submit_order(db: Session, order_in: OrderCreate, background_tasks: BackgroundTasks) -> Order:
    """Persist an order and queue its notification"""
    api_logger.info("Submitting order", extra={
        "catalogue_id": order_in.catalogue_id,
        "selected_pages": order_in.selected_pages
    })

    try:
        start_time = time.time()
        order = create_order(db, order_in)
    except CatalogueNotFound as e:
        api_logger.warning("Order for unknown catalogue", extra={"catalogue_id": order_in.catalogue_id})
        raise HTTPException(status_code=404, detail=str(e))
    except OrderValidationError as e:
        api_logger.warning("Order failed validation", extra={
            "catalogue_id": order_in.catalogue_id,
            "error": str(e)
        })
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        api_logger.error("Error creating order", extra={
            "catalogue_id": order_in.catalogue_id,
            "error": str(e)
        })
        db.rollback()
        raise

    # Notification runs after the response and cannot undo the order
    background_tasks.add_task(dispatch_order_notification, order_payload(order), get_recipient_email(db))

    api_logger.info("Successfully created order", extra={
        "order_id": order.id,
        "page_count": len(order.selected_pages),
        "execution_time_ms": round((time.time() - start_time) * 1000, 2)
    })
    return order


def _get_or_404(db: Session, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        api_logger.warning("Order not found", extra={"order_id": order_id})
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post("", response_model=OrderSchema)
async def place_order(order_in: OrderCreate, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    return submit_order(db, order_in, background_tasks)


@router.get("", response_model=List[OrderSchema])
async def get_orders(
        status: Optional[OrderStatus] = None,
        search: Optional[str] = None,
        sort_by: Literal["created_at", "customer_name", "status"] = "created_at",
        sort_order: Literal["asc", "desc"] = "desc",
        db: Session = Depends(get_db)
):
    query = OrderQuery(status=status, search=search, sort_by=sort_by, sort_order=sort_order)
    api_logger.info("Listing orders", extra=query.model_dump(mode="json"))
    return list_orders(db, query)


@router.get("/{order_id}", response_model=OrderSchema)
async def get_order(order_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, order_id)


@router.put("/{order_id}/status", response_model=OrderSchema)
async def update_order_status(order_id: int, update: OrderStatusUpdate, db: Session = Depends(get_db)):
    order = _get_or_404(db, order_id)
    api_logger.info("Updating order status", extra={
        "order_id": order_id,
        "old_status": order.status.value,
        "new_status": update.status.value
    })

    try:
        order.status = update.status
        db.commit()
        db.refresh(order)
        return order
    except Exception as e:
        db.rollback()
        api_logger.error("Error updating order status", extra={
            "order_id": order_id,
            "error": str(e)
        })
        raise


@router.delete("/{order_id}")
async def delete_order(order_id: int, db: Session = Depends(get_db)):
    order = _get_or_404(db, order_id)

    try:
        db.delete(order)
        db.commit()
        api_logger.info(f"Successfully deleted order {order_id}")
        return {"success": True}
    except Exception as e:
        db.rollback()
        api_logger.error(f"Failed to delete order: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{order_id}/download")
async def download_order_pdf(order_id: int, db: Session = Depends(get_db)):
    """PDF containing only the order's selected pages"""
    order = _get_or_404(db, order_id)
    catalogue = order.catalogue

    api_logger.info("Building order download", extra={
        "order_id": order_id,
        "catalogue_id": order.catalogue_id,
        "selected_pages": order.selected_pages
    })

    try:
        start_time = time.time()
        content = await fulfilment_service.build(order.id, catalogue.file_url, order.selected_pages)
    except PipelineError as e:
        api_logger.error("Failed to build order download", extra={
            "order_id": order_id,
            "error_type": type(e).__name__,
            "error": e.message
        })
        raise pipeline_http_error(e)

    api_logger.info("Order download ready", extra={
        "order_id": order_id,
        "byte_size": len(content),
        "execution_time_ms": round((time.time() - start_time) * 1000, 2)
    })
    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": content_disposition(download_filename(order))
        }
    )
