# backend/catalogue/api/sessions.py
import time
from typing import List

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from .errors import pipeline_http_error
from .orders import submit_order
from ..database import get_db
from ..models.catalogue import Catalogue
from ..pipeline import LoadCancelled, PipelineError, RenderedPage
from ..schemas.order import Order as OrderSchema, OrderCreate
from ..schemas.session import (
    BatchResult,
    Checkout,
    RenderedPageInfo,
    SelectionState,
    SelectionToggle,
    SessionCreate,
    SessionState,
)
from ..services.sessions import BrowsingSession, SessionNotFound, session_registry
from ..utils.logging import api_logger

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def _page_info(session: BrowsingSession, page: RenderedPage) -> RenderedPageInfo:
    return RenderedPageInfo(
        page_number=page.page_number,
        aspect_ratio=page.aspect_ratio,
        width=page.width,
        height=page.height,
        image_url=f"/api/sessions/{session.id}/pages/{page.page_number}"
    )


def _session_state(session: BrowsingSession) -> SessionState:
    loader = session.loader
    return SessionState(
        session_id=session.id,
        catalogue_id=session.catalogue_id,
        catalogue_name=session.catalogue_name,
        state=loader.state,
        loaded_count=loader.loaded_count,
        total_pages=loader.total_pages,
        pages=[_page_info(session, page) for page in loader.pages],
        selected_pages=list(session.selection.ascending_list())
    )


def _selection_state(session: BrowsingSession) -> SelectionState:
    return SelectionState(
        selected_pages=list(session.selection.ascending_list()),
        size=session.selection.size()
    )


def _get_session(session_id: str) -> BrowsingSession:
    try:
        return session_registry.get(session_id)
    except SessionNotFound:
        api_logger.warning("Browsing session not found", extra={"session_id": session_id})
        raise HTTPException(status_code=404, detail="Session not found")


def _get_catalogue(db: Session, catalogue_id: int) -> Catalogue:
    catalogue = db.query(Catalogue).filter(Catalogue.id == catalogue_id).first()
    if not catalogue:
        api_logger.warning("Catalogue not found", extra={"catalogue_id": catalogue_id})
        raise HTTPException(status_code=404, detail="Catalogue not found")
    return catalogue


@router.post("", response_model=SessionState)
async def open_session(request: SessionCreate, db: Session = Depends(get_db)):
    api_logger.info("Opening browsing session", extra={
        "catalogue_id": request.catalogue_id,
        "device": request.device
    })

    catalogue = _get_catalogue(db, request.catalogue_id)

    try:
        start_time = time.time()
        session = await session_registry.open(catalogue, request.device)
    except PipelineError as e:
        api_logger.error("Failed to load catalogue", extra={
            "catalogue_id": request.catalogue_id,
            "error_type": type(e).__name__,
            "error": e.message
        })
        raise pipeline_http_error(e)

    api_logger.info("Browsing session ready", extra={
        "session_id": session.id,
        "loaded_count": session.loader.loaded_count,
        "execution_time_ms": round((time.time() - start_time) * 1000, 2)
    })
    return _session_state(session)


@router.get("/{session_id}", response_model=SessionState)
async def get_session(session_id: str):
    return _session_state(_get_session(session_id))


@router.post("/{session_id}/more", response_model=BatchResult)
async def load_more_pages(session_id: str):
    session = _get_session(session_id)
    api_logger.info("Loading more pages", extra={
        "session_id": session_id,
        "loaded_count": session.loader.loaded_count
    })

    try:
        batch = await session.load_more()
    except LoadCancelled:
        # The session was closed while loading; nothing to report
        raise HTTPException(status_code=409, detail="Session was closed")
    except PipelineError as e:
        api_logger.warning("Batch failed, session kept", extra={
            "session_id": session_id,
            "error_type": type(e).__name__,
            "error": e.message
        })
        raise pipeline_http_error(e)

    loader = session.loader
    return BatchResult(
        state=loader.state,
        loaded_count=loader.loaded_count,
        total_pages=loader.total_pages,
        pages=[_page_info(session, page) for page in batch]
    )


@router.put("/{session_id}/catalogue", response_model=SessionState)
async def switch_catalogue(session_id: str, catalogue_id: int = Body(..., embed=True), db: Session = Depends(get_db)):
    """Browse another catalogue in the same session; the selection is voided"""
    session = _get_session(session_id)
    catalogue = _get_catalogue(db, catalogue_id)

    try:
        await session.switch_catalogue(catalogue)
    except PipelineError as e:
        api_logger.error("Failed to load catalogue", extra={
            "session_id": session_id,
            "catalogue_id": catalogue_id,
            "error": e.message
        })
        raise pipeline_http_error(e)

    return _session_state(session)


@router.delete("/{session_id}")
async def close_session(session_id: str):
    try:
        session_registry.close(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"success": True}


@router.get("/{session_id}/pages/{page_number}")
async def get_page_image(session_id: str, page_number: int):
    session = _get_session(session_id)
    page = session.page(page_number)
    if page is None:
        raise HTTPException(status_code=404, detail="Page not loaded")
    return Response(content=page.image_data, media_type=page.media_type)


@router.get("/{session_id}/selection", response_model=SelectionState)
async def get_selection(session_id: str):
    return _selection_state(_get_session(session_id))


@router.post("/{session_id}/selection/toggle", response_model=SelectionState)
async def toggle_selection(session_id: str, toggle: SelectionToggle):
    session = _get_session(session_id)
    try:
        selected = session.selection.toggle(toggle.page_number)
    except PipelineError as e:
        raise pipeline_http_error(e)

    api_logger.debug("Toggled page selection", extra={
        "session_id": session_id,
        "page_number": toggle.page_number,
        "selected": selected
    })
    return _selection_state(session)


@router.delete("/{session_id}/selection", response_model=SelectionState)
async def clear_selection(session_id: str):
    session = _get_session(session_id)
    session.selection.clear()
    return _selection_state(session)


@router.post("/{session_id}/checkout", response_model=OrderSchema)
async def checkout(
        session_id: str,
        checkout_request: Checkout,
        background_tasks: BackgroundTasks,
        db: Session = Depends(get_db)
):
    session = _get_session(session_id)
    pages: List[int] = list(session.selection.ascending_list())
    if not pages:
        raise HTTPException(status_code=400, detail="Your cart is empty")

    order = submit_order(
        db,
        OrderCreate(
            catalogue_id=session.catalogue_id,
            selected_pages=pages,
            customer=checkout_request.customer
        ),
        background_tasks
    )
    session.selection.clear()
    return order
