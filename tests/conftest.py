"""
Pytest fixtures for the storefront backend.

Provides an in-memory database per test, a data service bound to it,
catalog/customer factories and a test client wired to the same database.
"""
import os
import tempfile
from decimal import Decimal

# Settings are read at import time, so the environment is set first.
_TMP_DIR = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MEDIA_ROOT"] = os.path.join(_TMP_DIR, "media")
os.environ["INVOICE_DIR"] = os.path.join(_TMP_DIR, "invoices")
os.environ["BUSINESS_NAME"] = "Moonlight Scent"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.api.deps import get_db, get_storage
from storefront.core.cache import QueryCache
from storefront.db.base import Base
from storefront.db.data_service import DataService
from storefront.db.init_db import init_db
from storefront.db.session import enable_sqlite_foreign_keys
from storefront.db.storage import LocalMediaStorage
from storefront.main import app
from storefront.services.sale_session import SaleSessionStore


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database with foreign keys enforced."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture(scope="function")
def storage(tmp_path):
    return LocalMediaStorage(str(tmp_path / "media"), "/media")


@pytest.fixture(scope="function")
def data(db_session, storage):
    return DataService(db_session, storage)


@pytest.fixture(scope="function")
def category(data):
    return data.insert("categories", {"name": "Perfumes", "description": "Eau de parfum"})


@pytest.fixture(scope="function")
def make_product(data, category):
    """Factory: make_product("Oud Noir", quantity=5, selling_price="8000")."""

    def _make(name, quantity=10, cost_price="5000", selling_price="8000", category_id=None):
        return data.insert("products", {
            "name": name,
            "category_id": category_id or category.id,
            "cost_price": Decimal(cost_price),
            "selling_price": Decimal(selling_price),
            "quantity": quantity,
        })

    return _make


@pytest.fixture(scope="function")
def customer(data):
    return data.insert("customers", {
        "name": "Adaeze Okafor",
        "phone": "+234 801 234 5678",
        "email": "adaeze@example.com",
        "credit_limit": Decimal("50000"),
    })


@pytest.fixture(scope="function")
def client(session_factory, storage):
    """Test client sharing the fixture database, with fresh sessions and cache."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.state.sale_sessions = SaleSessionStore()
    app.state.query_cache = QueryCache()

    yield TestClient(app)

    app.dependency_overrides.clear()
