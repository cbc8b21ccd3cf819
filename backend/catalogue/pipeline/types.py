# backend/catalogue/pipeline/types.py
import asyncio
import base64
import enum
from dataclasses import dataclass, field


@dataclass(frozen=True)
class RenderedPage:
    """A single rasterised catalogue page"""
    page_number: int
    image_data: bytes
    width: int
    height: int
    media_type: str = "image/jpeg"

    @property
    def aspect_ratio(self) -> float:
        """Rendered width divided by rendered height"""
        return self.width / self.height

    def data_url(self) -> str:
        encoded = base64.b64encode(self.image_data).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"


class LoaderState(str, enum.Enum):
    INITIAL = "initial"
    PARTIAL = "partial"
    COMPLETE = "complete"


@dataclass
class CancellationToken:
    """Cooperative cancellation flag shared by one browsing session"""
    _event: asyncio.Event = field(default_factory=asyncio.Event)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()
