# backend/catalogue/pipeline/decoder.py
"""PDF page rasterisation.

Documents are opened into an opaque :class:`DocumentHandle` that exposes only
the page count and per-page handles; the PyMuPDF objects never leave this
module. MuPDF is not thread-safe, so every call into it goes through the
handle's lock while JPEG encoding (Pillow) runs outside it.
"""
import asyncio
import io
import threading
import time

import fitz  # pymupdf
from PIL import Image

from .errors import DecodeFailure, TimeoutFailure
from .types import RenderedPage
from ..utils.logging import pipeline_logger

# PDF user space is 72 points per inch; scale 1.0 renders at 72 dpi
BASE_DPI = 72


class PageHandle:
    """One page of an open document"""

    def __init__(self, document: "DocumentHandle", page_number: int):
        self._document = document
        self.page_number = page_number

    def render(self, scale: float) -> RenderedPage:
        """Rasterise the page at ``scale`` times its native size"""
        if scale <= 0:
            raise DecodeFailure(f"Render scale must be positive, got {scale}")

        with self._document._lock:
            if self._document.closed:
                raise DecodeFailure("Document handle is closed")
            try:
                page = self._document._doc.load_page(self.page_number - 1)
                pixmap = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
                width, height = pixmap.width, pixmap.height
                samples = bytes(pixmap.samples)
                mode = "RGB" if pixmap.n == 3 else "L"
            except Exception as e:
                raise DecodeFailure(f"Failed to render page {self.page_number}: {e}") from e
            finally:
                pixmap = None  # release the raster surface

        if width <= 0 or height <= 0:
            raise DecodeFailure(f"Page {self.page_number} has empty geometry")

        image = Image.frombytes(mode, (width, height), samples)
        buffer = io.BytesIO()
        image.convert("RGB").save(buffer, format="JPEG", quality=self._document.jpeg_quality)

        return RenderedPage(
            page_number=self.page_number,
            image_data=buffer.getvalue(),
            width=width,
            height=height
        )


class DocumentHandle:
    """Opaque handle over a decoded PDF"""

    def __init__(self, doc: "fitz.Document", jpeg_quality: int):
        self._doc = doc
        self._lock = threading.Lock()
        self.jpeg_quality = jpeg_quality
        self.closed = False

    def get_page_count(self) -> int:
        return self._doc.page_count

    def get_page(self, page_number: int) -> PageHandle:
        total = self.get_page_count()
        if not isinstance(page_number, int) or page_number < 1 or page_number > total:
            raise DecodeFailure(f"Page {page_number} is out of range 1-{total}")
        return PageHandle(self, page_number)

    def close(self) -> None:
        with self._lock:
            if not self.closed:
                self._doc.close()
                self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class PageDecoder:
    """Explicitly constructed PDF decoder.

    ``max_workers`` bounds how many pages are rasterised in worker threads at
    once; ``timeout`` (seconds) bounds a single page decode.
    """

    def __init__(
            self,
            default_scale: float = 1.5,
            jpeg_quality: int = 80,
            max_workers: int = 4,
            timeout: float | None = None
    ):
        if default_scale <= 0:
            raise ValueError("default_scale must be positive")
        self.default_scale = default_scale
        self.jpeg_quality = jpeg_quality
        self.max_workers = max(1, max_workers)
        self.timeout = timeout
        self._slots = threading.BoundedSemaphore(self.max_workers)

    @classmethod
    def from_settings(cls, settings) -> "PageDecoder":
        return cls(
            default_scale=settings.RENDER_SCALE_DESKTOP,
            jpeg_quality=settings.JPEG_QUALITY,
            max_workers=settings.DECODE_MAX_WORKERS,
            timeout=settings.DECODE_TIMEOUT_SECONDS
        )

    def open(self, data: bytes) -> DocumentHandle:
        if not data:
            raise DecodeFailure("Document is empty")
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise DecodeFailure(f"Not a valid PDF document: {e}") from e

        if doc.needs_pass:
            doc.close()
            raise DecodeFailure("Document is encrypted")
        if doc.page_count < 1:
            doc.close()
            raise DecodeFailure("Document has no pages")

        return DocumentHandle(doc, self.jpeg_quality)

    async def load(self, data: bytes) -> DocumentHandle:
        """``open`` run in a worker thread"""
        return await asyncio.to_thread(self.open, data)

    def count_pages(self, data: bytes) -> int:
        with self.open(data) as handle:
            return handle.get_page_count()

    def render_sync(self, handle: DocumentHandle, page_number: int, scale: float | None = None) -> RenderedPage:
        page = handle.get_page(page_number)
        with self._slots:
            return page.render(scale if scale is not None else self.default_scale)

    async def decode(self, source, page_number: int, scale: float | None = None) -> RenderedPage:
        """Render one page of ``source`` (bytes or an open DocumentHandle)"""
        start_time = time.perf_counter()
        owns_handle = not isinstance(source, DocumentHandle)
        handle = await self.load(source) if owns_handle else source

        try:
            work = asyncio.to_thread(self.render_sync, handle, page_number, scale)
            if self.timeout:
                try:
                    rendered = await asyncio.wait_for(work, timeout=self.timeout)
                except asyncio.TimeoutError as e:
                    raise TimeoutFailure(f"Timed out decoding page {page_number}", stage="decode") from e
            else:
                rendered = await work
        except DecodeFailure as e:
            pipeline_logger.warning("Page decode failed", extra={
                "page_number": page_number,
                "error": e.message
            })
            raise
        finally:
            if owns_handle:
                handle.close()

        pipeline_logger.debug("Decoded page", extra={
            "page_number": page_number,
            "width": rendered.width,
            "height": rendered.height,
            "byte_size": len(rendered.image_data),
            "execution_time_ms": round((time.perf_counter() - start_time) * 1000, 2)
        })
        return rendered
