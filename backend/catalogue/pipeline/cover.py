# backend/catalogue/pipeline/cover.py
from typing import Optional


def select_cover_page(total_pages: int, override: Optional[int] = None) -> int:
    """Page used as a catalogue's thumbnail.

    The override wins when it is in range; an override past the last page is
    clamped to it. Anything else falls back to the first page.
    """
    if total_pages < 1:
        return 1
    if override is None or override < 1:
        return 1
    return min(override, total_pages)
