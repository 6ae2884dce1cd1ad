import logging
import os
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

# Set test environment variables before the app reads its settings
os.environ.update(
    {
        "DATABASE_URL": "sqlite://",
        "MAX_PAYLOAD_BYTES": "1048576",
        "INGRESS_BASE_URL": "https://hooks.test",
    }
)

from hookguard.core.config import Settings, get_settings
from hookguard.db import crud, models, schemas
from hookguard.db.models import Base

logger = logging.getLogger(__name__)


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(db_engine) -> Iterator[Session]:
    session = Session(bind=db_engine)
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def tenant(db: Session) -> models.Tenant:
    return crud.create_tenant(db, schemas.TenantCreate(name="Acme"))


@pytest.fixture
def client(db: Session) -> Iterator[TestClient]:
    """Create a test client bound to the in-memory test database."""
    from hookguard.main import app, db_session

    app.dependency_overrides[db_session] = lambda: db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
