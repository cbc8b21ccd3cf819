# backend/catalogue/pipeline/extractor.py
"""Builds a new PDF containing only an order's selected pages."""

import io
import time
from typing import Sequence

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError

from .errors import ExtractionFailure
from ..utils.logging import pipeline_logger

PRODUCER = "Catalogue Fulfilment"


def validate_page_list(pages: Sequence[int], total_pages: int) -> None:
    """Pages must be non-empty, strictly ascending and within 1..total_pages"""
    if not pages:
        raise ExtractionFailure("No pages requested")

    previous = 0
    for page_number in pages:
        if isinstance(page_number, bool) or not isinstance(page_number, int):
            raise ExtractionFailure(f"Invalid page number {page_number!r}")
        if page_number <= previous:
            raise ExtractionFailure("Page list must be strictly ascending without duplicates")
        if page_number > total_pages:
            raise ExtractionFailure(f"Page {page_number} is out of range 1-{total_pages}")
        previous = page_number


class PageSubsetExtractor:
    """All-or-nothing page subset extraction backed by pypdf"""

    def extract(self, data: bytes, pages: Sequence[int]) -> bytes:
        start_time = time.perf_counter()
        reader = self._load(data)
        total_pages = len(reader.pages)
        validate_page_list(pages, total_pages)

        writer = PdfWriter()
        try:
            for page_number in pages:
                writer.add_page(reader.pages[page_number - 1])

            metadata = {"/Producer": PRODUCER}
            source_metadata = reader.metadata
            if source_metadata and source_metadata.title:
                metadata["/Title"] = source_metadata.title
            writer.add_metadata(metadata)

            output = io.BytesIO()
            writer.write(output)
        except Exception as e:
            raise ExtractionFailure(f"Failed to assemble subset document: {e}") from e

        result = output.getvalue()
        pipeline_logger.info("Extracted page subset", extra={
            "source_pages": total_pages,
            "selected_pages": list(pages),
            "byte_size": len(result),
            "execution_time_ms": round((time.perf_counter() - start_time) * 1000, 2)
        })
        return result

    @staticmethod
    def _load(data: bytes) -> PdfReader:
        if not data:
            raise ExtractionFailure("Source document is empty")
        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted:
                raise ExtractionFailure("Source document is encrypted")
            # Touch the page tree so structural damage surfaces here
            len(reader.pages)
        except ExtractionFailure:
            raise
        except PdfReadError as e:
            raise ExtractionFailure(f"Corrupted or invalid PDF: {e}") from e
        except Exception as e:
            raise ExtractionFailure(f"Unexpected error reading PDF: {e}") from e
        return reader
