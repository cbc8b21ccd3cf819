# tests/conftest.py
import io
import os
import shutil
import tempfile
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from catalogue.main import app
from catalogue.database import Base, get_db
from catalogue.models import Catalogue, Order
from catalogue.config import settings
from catalogue.services.engine import fetcher
from catalogue.services.sessions import session_registry
from catalogue.utils.files import public_url

SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_BASE_URL = "http://testserver"


def build_pdf(page_count: int, title: str = "Test Catalogue", page_sizes=None) -> bytes:
    """Build a PDF whose page N carries the text 'Catalogue page NNN'"""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=letter)
    pdf.setTitle(title)
    for number in range(1, page_count + 1):
        if page_sizes:
            pdf.setPageSize(page_sizes[number - 1])
        pdf.drawString(72, 72, f"Catalogue page {number:03d}")
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


@pytest.fixture(scope="session")
def engine():
    """Create test database engine"""
    engine = create_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool  # Needed for SQLite in-memory database
    )
    return engine

@pytest.fixture(scope="session")
def tables(engine):
    """Create all tables in the test database"""
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)

@pytest.fixture
def db_session(engine, tables):
    """Creates a new database session for a test"""
    connection = engine.connect()
    transaction = connection.begin()
    session = sessionmaker(bind=connection)()

    yield session

    session.close()
    transaction.rollback()
    connection.close()

@pytest.fixture(scope="session")
def temp_storage_dir():
    """Create temporary storage directory for test files"""
    temp_dir = tempfile.mkdtemp()
    Path(temp_dir, "catalogues").mkdir(parents=True, exist_ok=True)
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)

@pytest.fixture(autouse=True)
def override_settings(temp_storage_dir):
    """Override settings for testing"""
    original_storage = settings.STORAGE_PATH
    original_catalogues = settings.CATALOGUES_PATH
    original_base_url = settings.PUBLIC_BASE_URL

    settings.STORAGE_PATH = temp_storage_dir
    settings.CATALOGUES_PATH = temp_storage_dir / "catalogues"
    settings.PUBLIC_BASE_URL = TEST_BASE_URL

    yield

    settings.STORAGE_PATH = original_storage
    settings.CATALOGUES_PATH = original_catalogues
    settings.PUBLIC_BASE_URL = original_base_url


def storage_handler(request: httpx.Request) -> httpx.Response:
    """Serve files under /storage/ from the test storage directory"""
    path = request.url.path
    if not path.startswith("/storage/"):
        return httpx.Response(404)
    file_path = settings.STORAGE_PATH / path[len("/storage/"):]
    if not file_path.is_file():
        return httpx.Response(404)
    return httpx.Response(200, content=file_path.read_bytes())


@pytest.fixture(autouse=True)
def content_store(monkeypatch):
    """Route the shared fetcher to the test storage directory"""
    client = httpx.AsyncClient(transport=httpx.MockTransport(storage_handler))
    monkeypatch.setattr(fetcher, "_client", client)
    monkeypatch.setattr(fetcher, "retries", 0)
    yield client

@pytest.fixture(autouse=True)
def reset_sessions():
    yield
    session_registry.close_all()

@pytest.fixture
def client(db_session):
    """Test client using the test database"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

@pytest.fixture
def pdf_factory():
    return build_pdf

@pytest.fixture
def sample_pdf():
    return build_pdf(10)

@pytest.fixture
def sample_catalogue(db_session, temp_storage_dir, sample_pdf):
    """A stored 10-page catalogue"""
    file_path = temp_storage_dir / "catalogues" / "sample.pdf"
    file_path.write_bytes(sample_pdf)
    relative_path = "catalogues/sample.pdf"

    catalogue = Catalogue(
        name="Spring Collection",
        file_path=relative_path,
        file_url=public_url(relative_path),
        file_size=len(sample_pdf),
        page_count=10,
        cover_page=1
    )
    db_session.add(catalogue)
    db_session.commit()
    db_session.refresh(catalogue)
    return catalogue

@pytest.fixture
def sample_order(db_session, sample_catalogue):
    order = Order(
        catalogue_id=sample_catalogue.id,
        catalogue_name=sample_catalogue.name,
        customer_name="Ada Lovelace",
        customer_email="ada@example.com",
        customer_phone="+44 20 7946 0000",
        selected_pages=[2, 5, 9]
    )
    db_session.add(order)
    db_session.commit()
    db_session.refresh(order)
    return order

@pytest.fixture(scope="session", autouse=True)
def cleanup_test_files():
    """Clean up test files after all tests are done"""
    yield
    for file in ["test.db", "catalogue.db"]:
        if os.path.exists(file):
            os.remove(file)
