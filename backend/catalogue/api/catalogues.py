# backend/catalogue/api/catalogues.py
import time
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile
from sqlalchemy.orm import Session

from .errors import pipeline_http_error
from ..database import get_db
from ..models.catalogue import Catalogue
from ..pipeline import DecodeFailure, PipelineError
from ..schemas.catalogue import Catalogue as CatalogueSchema, CatalogueUpdate
from ..services.catalogues import catalogue_service
from ..services.cleanup import cleanup_service
from ..utils.files import display_name, is_pdf_upload
from ..utils.logging import api_logger

router = APIRouter(prefix="/api/catalogues", tags=["catalogues"])


def _get_or_404(db: Session, catalogue_id: int) -> Catalogue:
    catalogue = db.query(Catalogue).filter(Catalogue.id == catalogue_id).first()
    if not catalogue:
        api_logger.warning("Catalogue not found", extra={"catalogue_id": catalogue_id})
        raise HTTPException(status_code=404, detail="Catalogue not found")
    return catalogue


@router.get("", response_model=List[CatalogueSchema])
async def list_catalogues(db: Session = Depends(get_db)):
    api_logger.info("Listing catalogues")
    return db.query(Catalogue).order_by(Catalogue.uploaded_at.desc(), Catalogue.id.desc()).all()


@router.post("", response_model=CatalogueSchema)
async def upload_catalogue(
        file: UploadFile = File(...),
        name: Optional[str] = Form(None),
        db: Session = Depends(get_db)
):
    api_logger.info("Uploading catalogue", extra={
        "file_name": file.filename,
        "content_type": file.content_type
    })

    if not is_pdf_upload(file):
        api_logger.warning("Rejected non-PDF upload", extra={"file_name": file.filename})
        raise HTTPException(status_code=400, detail="Please upload a PDF file")

    try:
        start_time = time.time()
        data = await file.read()
        catalogue = await catalogue_service.store(db, data, (name or "").strip() or display_name(file.filename))

        execution_time = time.time() - start_time
        api_logger.info("Successfully uploaded catalogue", extra={
            "catalogue_id": catalogue.id,
            "page_count": catalogue.page_count,
            "execution_time_ms": round(execution_time * 1000, 2)
        })
        return catalogue

    except DecodeFailure as e:
        api_logger.warning("Uploaded file is not a usable PDF", extra={
            "file_name": file.filename,
            "error": e.message
        })
        raise HTTPException(status_code=400, detail=f"Invalid PDF: {e.message}")
    except Exception as e:
        api_logger.error("Error uploading catalogue", extra={
            "file_name": file.filename,
            "error": str(e)
        })
        raise


@router.get("/{catalogue_id}", response_model=CatalogueSchema)
async def get_catalogue(catalogue_id: int, db: Session = Depends(get_db)):
    api_logger.info("Retrieving catalogue", extra={"catalogue_id": catalogue_id})
    return _get_or_404(db, catalogue_id)


@router.put("/{catalogue_id}", response_model=CatalogueSchema)
async def update_catalogue(catalogue_id: int, update: CatalogueUpdate, db: Session = Depends(get_db)):
    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    api_logger.info("Updating catalogue", extra={
        "catalogue_id": catalogue_id,
        "update_fields": list(changes.keys())
    })

    catalogue = _get_or_404(db, catalogue_id)

    cover_page = changes.get("cover_page")
    if cover_page is not None and not 1 <= cover_page <= catalogue.page_count:
        api_logger.warning("Cover page out of range", extra={
            "catalogue_id": catalogue_id,
            "cover_page": cover_page,
            "page_count": catalogue.page_count
        })
        raise HTTPException(
            status_code=400,
            detail=f"Cover page must be between 1 and {catalogue.page_count}"
        )

    try:
        original_values = {field: getattr(catalogue, field) for field in changes}
        for field, value in changes.items():
            setattr(catalogue, field, value)

        db.commit()
        db.refresh(catalogue)

        api_logger.info("Successfully updated catalogue", extra={
            "catalogue_id": catalogue_id,
            "original_values": original_values,
            "new_values": changes
        })
        return catalogue

    except Exception as e:
        api_logger.error("Error updating catalogue", extra={
            "catalogue_id": catalogue_id,
            "error": str(e)
        })
        db.rollback()
        raise


@router.delete("/{catalogue_id}")
async def delete_catalogue(catalogue_id: int, db: Session = Depends(get_db)):
    api_logger.info("Deleting catalogue", extra={"catalogue_id": catalogue_id})

    catalogue = _get_or_404(db, catalogue_id)

    try:
        await cleanup_service.delete_catalogue_artifacts(catalogue)

        # Orders cascade with the catalogue
        db.delete(catalogue)
        db.commit()

        api_logger.info(f"Successfully deleted catalogue {catalogue_id}")
        return {"success": True}

    except Exception as e:
        db.rollback()
        api_logger.error(f"Failed to delete catalogue: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{catalogue_id}/cover")
async def get_catalogue_cover(catalogue_id: int, db: Session = Depends(get_db)):
    catalogue = _get_or_404(db, catalogue_id)

    try:
        rendered = await catalogue_service.render_cover(catalogue)
    except PipelineError as e:
        api_logger.error("Failed to render catalogue cover", extra={
            "catalogue_id": catalogue_id,
            "error": e.message
        })
        raise pipeline_http_error(e)

    return Response(
        content=rendered.image_data,
        media_type=rendered.media_type,
        headers={
            "X-Page-Number": str(rendered.page_number),
            "X-Aspect-Ratio": f"{rendered.aspect_ratio:.6f}"
        }
    )
