"""Shared fixtures: in-memory SQLite, two owners, authenticated TestClient."""
import os

# Settings are read at import time; point them at SQLite before importing the app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["EMAIL_SIMULATE"] = "true"
os.environ["TIMEZONE"] = "America/Bogota"
os.environ.pop("LOG_DIR", None)

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.main import app
from app.database.database import Base, engine, get_db
from app.modules.auth.models import User
from app.modules.auth.utils import create_access_token, hash_password
from app.modules.facturas.models import Factura, FacturaStatus

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# One hash for every fixture user; bcrypt is slow on purpose
TEST_PASSWORD = "password123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _make_user(db, email: str, first_name: str) -> User:
    user = User(
        first_name=first_name,
        last_name="Tester",
        email=email,
        password=TEST_PASSWORD_HASH,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user_a(db) -> User:
    return _make_user(db, "ana@example.com", "Ana")


@pytest.fixture
def user_b(db) -> User:
    return _make_user(db, "bruno@example.com", "Bruno")


def auth_headers_for(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "email": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_a(user_a) -> dict:
    return auth_headers_for(user_a)


@pytest.fixture
def headers_b(user_b) -> dict:
    return auth_headers_for(user_b)


@pytest.fixture
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_factura(db):
    """Insert a factura directly, bypassing the service."""

    def _make(owner: User, label: str = "F-001", amount: str = "100.00",
              due_date: datetime = datetime(2025, 1, 1),
              status: FacturaStatus = FacturaStatus.PENDING,
              paid_date: datetime = None) -> Factura:
        factura = Factura(
            owner_id=owner.id,
            label=label,
            amount=Decimal(amount),
            due_date=due_date,
            paid_date=paid_date,
            status=status,
        )
        db.add(factura)
        db.commit()
        db.refresh(factura)
        return factura

    return _make


class FakeNotifier:
    """Records deliveries; raises or reports failure for chosen labels."""

    def __init__(self, raise_for=(), fail_for=()):
        self.sent = []
        self.raise_for = set(raise_for)
        self.fail_for = set(fail_for)

    def send(self, address, factura) -> bool:
        if factura.label in self.raise_for:
            raise RuntimeError("smtp connection refused")
        if factura.label in self.fail_for:
            return False
        self.sent.append((address, factura.label))
        return True


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()
