import httpx
import pytest
from asgi_lifespan import LifespanManager

from app.core.config import settings
from app.core.db import get_session
from app.main import app
from app.routers import tryon_helpers
from app.services.tryon.images import ImageResolver
from app.services.tryon.providers.base import MockSynthesisClient
from app.services.tryon.stores import InMemoryBatchStore
from tests.fixtures import (
    FakeCatalog,
    FakeCategory,
    FakeOutfit,
    FakeSession,
    RecordingDispatcher,
    no_sleep,
    png_data_url,
)

API_BASE = "http://test"


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture
def resolver(tmp_path, upload_dir):
    return ImageResolver(
        public_dir=str(tmp_path / "public"),
        catalog_dir=str(tmp_path / "catalog"),
        upload_dir=str(upload_dir),
        project_dir=str(tmp_path),
    )


@pytest.fixture
def store():
    return InMemoryBatchStore()


@pytest.fixture
def catalog():
    return FakeCatalog(
        outfits=[
            FakeOutfit(1, "Indigo Kurta", png_data_url("blue"), cloth_type="Casuals", price=1200),
            FakeOutfit(2, "Silk Chudi", png_data_url("green"), cloth_type="Chudi", price=2400),
            FakeOutfit(3, "Retired Blazer", png_data_url("black"), cloth_type="Blazer", is_active=False),
            FakeOutfit(4, "Lost Saree", "/images/women/missing.jpg", cloth_type="Traditional"),
        ],
        categories=[FakeCategory(1, "casuals", "women")],
    )


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def synthesis():
    return MockSynthesisClient(delay_s=0, sleep=no_sleep)


@pytest.fixture
def db_session():
    return FakeSession()


@pytest.fixture
async def client(store, catalog, dispatcher, synthesis, resolver, db_session):
    app.dependency_overrides[tryon_helpers.get_batch_store] = lambda: store
    app.dependency_overrides[tryon_helpers.get_catalog] = lambda: catalog
    app.dependency_overrides[tryon_helpers.get_batch_dispatcher] = lambda: dispatcher
    app.dependency_overrides[tryon_helpers.get_synthesis] = lambda: synthesis
    app.dependency_overrides[tryon_helpers.get_resolver] = lambda: resolver
    app.dependency_overrides[get_session] = lambda: db_session
    async with LifespanManager(app):
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=API_BASE) as ac:
            yield ac
    app.dependency_overrides.clear()
