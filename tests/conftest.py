import os
import tempfile
from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from shelfmarket import models  # noqa: F401  ensure models are imported
from shelfmarket.airtable import AirtableSync, get_airtable_sync
from shelfmarket.database import Base, get_db
from shelfmarket.main import app
from shelfmarket.models import Company


@pytest.fixture(scope="session")
def engine():
    fd, path = tempfile.mkstemp()
    os.close(fd)
    test_db_url = f"sqlite:///{path}"
    engine = create_engine(
        test_db_url, connect_args={"check_same_thread": False}
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    yield engine
    engine.dispose()
    if os.path.exists(path):
        os.unlink(path)


@pytest.fixture(scope="session")
def SessionTesting(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def prepare_db(engine, SessionTesting):
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(SessionTesting):
    session = SessionTesting()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_airtable_sync] = lambda: AirtableSync(None)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_company(db_session):
    def _make(number="10000001", status="available", renewal_in_days=200, price="1000", **values):
        company = Company(
            name=values.pop("name", f"Shelf {number} Ltd"),
            number=number,
            country=values.pop("country", "United Kingdom"),
            purchase_price=Decimal(price),
            renewal_date=date.today() + timedelta(days=renewal_in_days),
            status=status,
            **values,
        )
        db_session.add(company)
        db_session.commit()
        return company

    return _make
