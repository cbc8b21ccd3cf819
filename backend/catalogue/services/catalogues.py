# backend/catalogue/services/catalogues.py
import asyncio
import time

from sqlalchemy.orm import Session

from .engine import decoder, fetcher
from ..config import settings
from ..models import Catalogue
from ..pipeline import BinaryFetcher, PageDecoder, RenderedPage, select_cover_page
from ..utils.files import get_relative_path, public_url, save_bytes
from ..utils.logging import service_logger


class CatalogueService:
    def __init__(self, fetcher: BinaryFetcher, decoder: PageDecoder):
        self.fetcher = fetcher
        self.decoder = decoder

    async def store(self, db: Session, data: bytes, name: str) -> Catalogue:
        """Count pages, write the PDF to the content store and record it.

        Raises DecodeFailure when ``data`` is not a usable PDF; nothing is
        written in that case.
        """
        page_count = await asyncio.to_thread(self.decoder.count_pages, data)

        saved_path = save_bytes(data, settings.CATALOGUES_PATH, ".pdf")
        relative_path = get_relative_path(saved_path, settings.STORAGE_PATH)

        catalogue = Catalogue(
            name=name,
            file_path=relative_path,
            file_url=public_url(relative_path),
            file_size=len(data),
            page_count=page_count,
            cover_page=1
        )
        try:
            db.add(catalogue)
            db.commit()
            db.refresh(catalogue)
        except Exception:
            db.rollback()
            saved_path.unlink(missing_ok=True)
            raise

        service_logger.info("Stored catalogue", extra={
            "catalogue_id": catalogue.id,
            "page_count": page_count,
            "file_size": len(data),
            "file_path": relative_path
        })
        return catalogue

    async def render_cover(self, catalogue: Catalogue) -> RenderedPage:
        start_time = time.perf_counter()
        page_number = select_cover_page(catalogue.page_count, catalogue.cover_page)
        data = await self.fetcher.fetch(catalogue.file_url)
        with await self.decoder.load(data) as handle:
            # The file is authoritative if the stored page count disagrees
            page_number = select_cover_page(handle.get_page_count(), page_number)
            rendered = await self.decoder.decode(handle, page_number, settings.COVER_RENDER_SCALE)

        service_logger.info("Rendered catalogue cover", extra={
            "catalogue_id": catalogue.id,
            "page_number": page_number,
            "execution_time_ms": round((time.perf_counter() - start_time) * 1000, 2)
        })
        return rendered


catalogue_service = CatalogueService(fetcher, decoder)
