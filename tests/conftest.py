import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("DATABASE_URL", "sqlite://")

import stockcheck.models  # noqa: F401
from stockcheck.core.deps import get_session_factory
from stockcheck.db.base import Base
from stockcheck.main import app


@pytest.fixture()
def test_context(tmp_path):
    # Multi-product checks read from worker threads, so every session needs its
    # own connection; an in-memory StaticPool would share one across threads.
    engine = create_engine(
        f"sqlite:///{tmp_path / 'stockcheck.db'}",
        connect_args={"check_same_thread": False},
    )
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    app.dependency_overrides[get_session_factory] = lambda: session_local

    with TestClient(app) as client:
        yield client, session_local

    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
