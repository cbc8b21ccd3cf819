# backend/catalogue/services/sessions.py
import time
from typing import Dict, List
from uuid import uuid4

from .engine import decoder, fetcher
from ..config import settings
from ..models import Catalogue
from ..pipeline import (
    BinaryFetcher,
    CancellationToken,
    LazyPageLoader,
    LoaderState,
    PageDecoder,
    RenderedPage,
    SelectionSet,
)
from ..utils.logging import service_logger


class SessionNotFound(KeyError):
    pass


class BrowsingSession:
    """One customer's view of one catalogue: rendered pages plus selection"""

    def __init__(self, fetcher: BinaryFetcher, decoder: PageDecoder, catalogue: Catalogue, device: str = "desktop"):
        self.id = uuid4().hex
        self.fetcher = fetcher
        self.decoder = decoder
        self.device = device
        self.selection = SelectionSet()
        self.last_seen = time.monotonic()
        self._attach(catalogue)

    def _attach(self, catalogue: Catalogue) -> None:
        profile = settings.device_profile(self.device)
        self.catalogue_id = catalogue.id
        self.catalogue_name = catalogue.name
        self.token = CancellationToken()
        self.loader = LazyPageLoader(
            self.fetcher,
            self.decoder,
            catalogue.file_url,
            initial_batch_size=profile["initial_batch_size"],
            batch_size=profile["batch_size"],
            scale=profile["scale"],
            cancel_token=self.token
        )
        self.selection.bind(catalogue.id, catalogue.page_count)

    async def start(self) -> List[RenderedPage]:
        self.touch()
        pages = await self.loader.load_initial()
        # The stored page count can drift from the file; trust the decoded one
        self.selection.total_pages = self.loader.total_pages
        return pages

    async def load_more(self) -> List[RenderedPage]:
        self.touch()
        return await self.loader.load_more()

    async def switch_catalogue(self, catalogue: Catalogue) -> List[RenderedPage]:
        """Abandon the current catalogue (and its selection) for another one"""
        if catalogue.id != self.catalogue_id:
            self.loader.close()
            self._attach(catalogue)
        elif self.loader.state is not LoaderState.INITIAL:
            return self.loader.pages
        return await self.start()

    def page(self, page_number: int) -> RenderedPage | None:
        self.touch()
        return self.loader.get_page(page_number)

    def touch(self) -> None:
        self.last_seen = time.monotonic()

    def close(self) -> None:
        self.loader.close()
        self.selection.clear()


class SessionRegistry:
    """In-memory browsing sessions keyed by id"""

    def __init__(self, fetcher: BinaryFetcher, decoder: PageDecoder, ttl_seconds: int = 3600):
        self.fetcher = fetcher
        self.decoder = decoder
        self.ttl_seconds = ttl_seconds
        self._sessions: Dict[str, BrowsingSession] = {}

    async def open(self, catalogue: Catalogue, device: str = "desktop") -> BrowsingSession:
        self.purge_expired()
        session = BrowsingSession(self.fetcher, self.decoder, catalogue, device)
        try:
            await session.start()
        except BaseException:
            session.close()
            raise

        self._sessions[session.id] = session
        service_logger.info("Opened browsing session", extra={
            "session_id": session.id,
            "catalogue_id": catalogue.id,
            "device": device,
            "loaded_count": session.loader.loaded_count,
            "total_pages": session.loader.total_pages
        })
        return session

    def get(self, session_id: str) -> BrowsingSession:
        self.purge_expired()
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(session_id)
        session.close()
        service_logger.info("Closed browsing session", extra={"session_id": session_id})

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)

    def purge_expired(self) -> int:
        cutoff = time.monotonic() - self.ttl_seconds
        expired = [sid for sid, s in self._sessions.items() if s.last_seen < cutoff]
        for session_id in expired:
            self.close(session_id)
        if expired:
            service_logger.info("Purged idle browsing sessions", extra={"count": len(expired)})
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)


session_registry = SessionRegistry(fetcher, decoder, ttl_seconds=settings.SESSION_TTL_SECONDS)

__all__ = ["BrowsingSession", "SessionRegistry", "SessionNotFound", "session_registry"]
