# backend/catalogue/services/engine.py
"""Shared pipeline handles, constructed once from settings"""

from ..config import settings
from ..pipeline import BinaryFetcher, PageDecoder, PageSubsetExtractor

fetcher = BinaryFetcher(
    timeout=settings.FETCH_TIMEOUT_SECONDS,
    retries=settings.FETCH_RETRIES
)
decoder = PageDecoder.from_settings(settings)
extractor = PageSubsetExtractor()
