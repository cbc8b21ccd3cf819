# backend/catalogue/pipeline/loader.py
import asyncio
import time
from typing import List

from .decoder import DocumentHandle, PageDecoder
from .errors import LoadCancelled, LoaderError
from .fetcher import BinaryFetcher
from .types import CancellationToken, LoaderState, RenderedPage
from ..utils.logging import pipeline_logger


class LazyPageLoader:
    """Materialises a document's rendered pages in batches.

    The loader moves INITIAL -> PARTIAL -> COMPLETE. Pages inside a batch are
    decoded concurrently but only become visible once the whole batch has
    succeeded; a failed batch leaves the loader exactly as it was.
    """

    def __init__(
            self,
            fetcher: BinaryFetcher,
            decoder: PageDecoder,
            url: str,
            initial_batch_size: int = 4,
            batch_size: int = 4,
            scale: float | None = None,
            cancel_token: CancellationToken | None = None
    ):
        if initial_batch_size < 1 or batch_size < 1:
            raise ValueError("Batch sizes must be at least 1")

        self.fetcher = fetcher
        self.decoder = decoder
        self.url = url
        self.initial_batch_size = initial_batch_size
        self.batch_size = batch_size
        self.scale = scale
        self.cancel_token = cancel_token or CancellationToken()

        self.state = LoaderState.INITIAL
        self.total_pages = 0
        self._pages: List[RenderedPage] = []
        self._handle: DocumentHandle | None = None
        self._lock = asyncio.Lock()

    @property
    def loaded_count(self) -> int:
        return len(self._pages)

    @property
    def pages(self) -> List[RenderedPage]:
        return list(self._pages)

    def get_page(self, page_number: int) -> RenderedPage | None:
        if 1 <= page_number <= len(self._pages):
            return self._pages[page_number - 1]
        return None

    async def load_initial(self) -> List[RenderedPage]:
        async with self._lock:
            if self.state is not LoaderState.INITIAL:
                return []
            self._check_cancelled()

            data = await self._until_cancelled(self.fetcher.fetch(self.url))
            handle = await self.decoder.load(data)
            total = handle.get_page_count()

            try:
                self._check_cancelled()
                batch = await self._decode_batch(handle, 1, min(total, self.initial_batch_size))
            except BaseException:
                handle.close()
                raise

            self._handle = handle
            self.total_pages = total
            self._commit(batch)
            return batch

    async def load_more(self) -> List[RenderedPage]:
        async with self._lock:
            if self.state is LoaderState.INITIAL:
                raise LoaderError("Initial batch has not been loaded")
            if self.state is LoaderState.COMPLETE:
                return []
            self._check_cancelled()

            first = self.loaded_count + 1
            count = min(self.total_pages - self.loaded_count, self.batch_size)
            batch = await self._decode_batch(self._handle, first, count)
            self._commit(batch)
            return batch

    def close(self) -> None:
        self.cancel_token.cancel()
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    async def _decode_batch(self, handle: DocumentHandle, first: int, count: int) -> List[RenderedPage]:
        start_time = time.perf_counter()
        page_numbers = list(range(first, first + count))

        batch = await self._until_cancelled(asyncio.gather(*(
            self.decoder.decode(handle, page_number, self.scale) for page_number in page_numbers
        )))

        pipeline_logger.info("Decoded page batch", extra={
            "url": self.url,
            "first_page": first,
            "page_count": count,
            "execution_time_ms": round((time.perf_counter() - start_time) * 1000, 2)
        })
        return sorted(batch, key=lambda page: page.page_number)

    async def _until_cancelled(self, awaitable):
        """Await ``awaitable`` unless the session is abandoned first"""
        work = asyncio.ensure_future(awaitable)
        cancelled = asyncio.ensure_future(self.cancel_token.wait())
        try:
            await asyncio.wait({work, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancelled.cancel()

        if self.cancel_token.cancelled:
            work.cancel()
            # Results of abandoned work are dropped without surfacing errors
            work.add_done_callback(lambda task: task.cancelled() or task.exception())
            raise LoadCancelled()
        return work.result()

    def _check_cancelled(self) -> None:
        if self.cancel_token.cancelled:
            raise LoadCancelled()

    def _commit(self, batch: List[RenderedPage]) -> None:
        self._pages.extend(batch)
        self.state = LoaderState.COMPLETE if self.loaded_count >= self.total_pages else LoaderState.PARTIAL
        pipeline_logger.debug("Loader advanced", extra={
            "url": self.url,
            "state": self.state.value,
            "loaded_count": self.loaded_count,
            "total_pages": self.total_pages
        })
