# tests/pipeline/test_fetcher.py
import httpx
import pytest

from catalogue.pipeline import BinaryFetcher, FetchFailure, TimeoutFailure

URL = "http://content.test/storage/catalogues/sample.pdf"


def client_for(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_returns_full_payload(sample_pdf):
    fetcher = BinaryFetcher(client=client_for(lambda request: httpx.Response(200, content=sample_pdf)))
    assert await fetcher.fetch(URL) == sample_pdf


@pytest.mark.asyncio
async def test_non_2xx_is_a_fetch_failure():
    fetcher = BinaryFetcher(retries=3, client=client_for(lambda request: httpx.Response(404)))
    with pytest.raises(FetchFailure) as excinfo:
        await fetcher.fetch(URL)
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_client_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(403)

    fetcher = BinaryFetcher(retries=3, client=client_for(handler))
    with pytest.raises(FetchFailure):
        await fetcher.fetch(URL)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_server_errors_are_retried(sample_pdf):
    responses = [httpx.Response(503), httpx.Response(502), httpx.Response(200, content=sample_pdf)]

    fetcher = BinaryFetcher(retries=2, client=client_for(lambda request: responses.pop(0)))
    assert await fetcher.fetch(URL) == sample_pdf
    assert responses == []


@pytest.mark.asyncio
async def test_retries_exhausted():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500)

    fetcher = BinaryFetcher(retries=1, client=client_for(handler))
    with pytest.raises(FetchFailure):
        await fetcher.fetch(URL)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_network_error_is_a_fetch_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    fetcher = BinaryFetcher(client=client_for(handler))
    with pytest.raises(FetchFailure):
        await fetcher.fetch(URL)


@pytest.mark.asyncio
async def test_timeout_is_reported_separately():
    def handler(request):
        raise httpx.ReadTimeout("stalled", request=request)

    fetcher = BinaryFetcher(client=client_for(handler))
    with pytest.raises(TimeoutFailure) as excinfo:
        await fetcher.fetch(URL)
    assert excinfo.value.stage == "fetch"


@pytest.mark.asyncio
async def test_truncated_body_is_detected():
    def handler(request):
        return httpx.Response(200, content=b"%PDF-1.4", headers={"Content-Length": "4096"})

    fetcher = BinaryFetcher(client=client_for(handler))
    with pytest.raises(FetchFailure):
        await fetcher.fetch(URL)


@pytest.mark.asyncio
async def test_empty_body_is_a_fetch_failure():
    fetcher = BinaryFetcher(client=client_for(lambda request: httpx.Response(200, content=b"")))
    with pytest.raises(FetchFailure):
        await fetcher.fetch(URL)
