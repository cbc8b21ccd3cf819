# tests/services/test_session_registry.py
import time

import pytest

from catalogue.models import Catalogue
from catalogue.pipeline import FetchFailure, LoaderState
from catalogue.services.engine import decoder, fetcher
from catalogue.services.sessions import SessionNotFound, SessionRegistry
from catalogue.utils.files import public_url


@pytest.fixture
def registry():
    registry = SessionRegistry(fetcher, decoder, ttl_seconds=60)
    yield registry
    registry.close_all()


@pytest.fixture
def second_catalogue(db_session, temp_storage_dir, pdf_factory):
    data = pdf_factory(3, title="Summer Collection")
    (temp_storage_dir / "catalogues" / "summer.pdf").write_bytes(data)
    catalogue = Catalogue(
        name="Summer Collection",
        file_path="catalogues/summer.pdf",
        file_url=public_url("catalogues/summer.pdf"),
        file_size=len(data),
        page_count=3,
        cover_page=1
    )
    db_session.add(catalogue)
    db_session.commit()
    db_session.refresh(catalogue)
    return catalogue


@pytest.mark.asyncio
async def test_open_loads_initial_batch(registry, sample_catalogue):
    session = await registry.open(sample_catalogue, "desktop")

    assert registry.get(session.id) is session
    assert session.loader.state == LoaderState.PARTIAL
    assert session.loader.loaded_count == 4
    assert session.loader.total_pages == 10
    assert session.selection.total_pages == 10


@pytest.mark.asyncio
async def test_mobile_sessions_use_smaller_batches(registry, sample_catalogue):
    session = await registry.open(sample_catalogue, "mobile")

    assert session.loader.loaded_count == 2
    await session.load_more()
    assert session.loader.loaded_count == 4


@pytest.mark.asyncio
async def test_open_failure_registers_nothing(registry, db_session):
    missing = Catalogue(
        name="Missing",
        file_path="catalogues/missing.pdf",
        file_url=public_url("catalogues/missing.pdf"),
        file_size=1,
        page_count=1
    )
    db_session.add(missing)
    db_session.commit()

    with pytest.raises(FetchFailure):
        await registry.open(missing)
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_switch_catalogue_clears_selection(registry, sample_catalogue, second_catalogue):
    session = await registry.open(sample_catalogue)
    session.selection.toggle(7)

    await session.switch_catalogue(second_catalogue)

    assert session.catalogue_id == second_catalogue.id
    assert session.selection.size() == 0
    assert session.loader.state == LoaderState.COMPLETE
    assert session.loader.loaded_count == 3


@pytest.mark.asyncio
async def test_switch_to_same_catalogue_keeps_state(registry, sample_catalogue):
    session = await registry.open(sample_catalogue)
    session.selection.toggle(2)
    loader = session.loader

    await session.switch_catalogue(sample_catalogue)

    assert session.loader is loader
    assert list(session.selection.ascending_list()) == [2]


@pytest.mark.asyncio
async def test_close_cancels_loader(registry, sample_catalogue):
    session = await registry.open(sample_catalogue)
    registry.close(session.id)

    assert session.token.cancelled
    with pytest.raises(SessionNotFound):
        registry.get(session.id)


def test_unknown_session(registry):
    with pytest.raises(SessionNotFound):
        registry.get("nope")
    with pytest.raises(SessionNotFound):
        registry.close("nope")


@pytest.mark.asyncio
async def test_idle_sessions_are_purged(registry, sample_catalogue):
    session = await registry.open(sample_catalogue)
    session.last_seen = time.monotonic() - 120

    assert registry.purge_expired() == 1
    assert len(registry) == 0
    assert session.token.cancelled
