# backend/catalogue/pipeline/selection.py
from typing import Iterator, Optional, Set

from .errors import SelectionError


class AscendingView:
    """Restartable, read-only ascending iteration over a selection"""

    def __init__(self, members: Set[int]):
        self._members = members

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._members))

    def __len__(self) -> int:
        return len(self._members)

    def __eq__(self, other) -> bool:
        return list(self) == list(other)

    def __repr__(self) -> str:
        return f"AscendingView({list(self)})"


class SelectionSet:
    """Page numbers a customer has marked for ordering within one catalogue.

    A selection belongs to a single catalogue; binding it to another one
    discards what was selected. When the catalogue's page count is known,
    toggles outside ``1..total_pages`` are rejected.
    """

    def __init__(self, catalogue_id: Optional[int] = None, total_pages: Optional[int] = None):
        self.catalogue_id = catalogue_id
        self.total_pages = total_pages
        self._members: Set[int] = set()

    def bind(self, catalogue_id: int, total_pages: Optional[int] = None) -> None:
        if catalogue_id != self.catalogue_id:
            self._members.clear()
        self.catalogue_id = catalogue_id
        self.total_pages = total_pages

    def toggle(self, page_number: int) -> bool:
        """Flip membership of ``page_number``; returns whether it is now selected"""
        self._validate(page_number)
        if page_number in self._members:
            self._members.remove(page_number)
            return False
        self._members.add(page_number)
        return True

    def clear(self) -> None:
        self._members.clear()

    def ascending_list(self) -> AscendingView:
        return AscendingView(self._members)

    def size(self) -> int:
        return len(self._members)

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, page_number) -> bool:
        return page_number in self._members

    def _validate(self, page_number: int) -> None:
        if isinstance(page_number, bool) or not isinstance(page_number, int):
            raise SelectionError(f"Page number must be an integer, got {page_number!r}")
        if page_number < 1:
            raise SelectionError(f"Page {page_number} is out of range")
        if self.total_pages is not None and page_number > self.total_pages:
            raise SelectionError(f"Page {page_number} is out of range 1-{self.total_pages}")
