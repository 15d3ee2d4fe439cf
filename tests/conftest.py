import mongomock
import pytest
from fastapi.testclient import TestClient

from auth import create_access_token
from config import ADMIN_EMAIL
from database import Query, Store
from notifications import Toaster
from storage import ObjectStorage


@pytest.fixture
def store():
    return Store(mongomock.MongoClient()["portfolio_test"])


@pytest.fixture
def offline_store():
    """A store with no database behind it; every call fails."""
    return Store(None)


@pytest.fixture
def toaster():
    return Toaster()


@pytest.fixture
def object_storage(tmp_path):
    return ObjectStorage(root=str(tmp_path / "storage"), base_url="http://testserver")


@pytest.fixture
def calls(monkeypatch):
    """Records (action, table) for every executed store query."""
    seen = []
    original = Query.execute

    def spy(self):
        seen.append((self.action, self.table))
        return original(self)

    monkeypatch.setattr(Query, "execute", spy)
    return seen


@pytest.fixture
def client(store, object_storage):
    import main

    main.app.dependency_overrides[main.get_store] = lambda: store
    main.app.dependency_overrides[main.get_storage] = lambda: object_storage
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": ADMIN_EMAIL, "role": "admin"})
    return {"Authorization": f"Bearer {token}"}
