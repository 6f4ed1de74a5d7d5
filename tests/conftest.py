"""
Shared test fixtures.

No network access: the Google client is replaced by FakeGoogleClient and the
review cache lives under pytest's tmp_path.
"""
import pytest

from app.db.backends import FileSnapshotBackend
from app.services.review_service import ReviewService
from app.services.review_store import ReviewStore
from tests.helpers import FIXED_NOW, FakeGoogleClient


@pytest.fixture
def cache_path(tmp_path):
    return tmp_path / "cache" / "reviews-cache.json"


@pytest.fixture
def store(cache_path) -> ReviewStore:
    return ReviewStore(FileSnapshotBackend(cache_path))


@pytest.fixture
def fake_client() -> FakeGoogleClient:
    return FakeGoogleClient()


@pytest.fixture
def service(store, fake_client) -> ReviewService:
    return ReviewService(
        store,
        fake_client,
        default_business_name="Our Business",
        clock=lambda: FIXED_NOW,
    )
