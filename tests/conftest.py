"""
Pytest fixtures for the rental service test suite.

Every test gets its own in-memory SQLite database (shared across sessions
through a StaticPool), factories for users, assets, leases and payments, and a
TestClient whose database session and current user are overridden.
"""

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import rental_service.app.models  # noqa: F401
from rental_service.app.main import app
from rental_service.app.models.assets.assets import Asset
from rental_service.app.models.leasing_tenants.lease_payments import LeasePayment
from rental_service.app.models.leasing_tenants.leases import Lease
from shared.core.auth import validate_current_token
from shared.core.database import Base, get_rental_db
from shared.core.schemas import UserToken
from shared.models.users import Users


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# =============================================================================
# Data factories
# =============================================================================


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role: str = "tenant", full_name: str = None, status: str = "active") -> Users:
        counter["n"] += 1
        user = Users(
            full_name=full_name or f"{role.title()} {counter['n']}",
            role=role,
            status=status,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def owner(make_user):
    return make_user("owner", "Somchai Owner")


@pytest.fixture
def tenant(make_user):
    return make_user("tenant", "Suda Tenant")


@pytest.fixture
def admin(make_user):
    return make_user("admin", "Admin")


@pytest.fixture
def make_asset(db):
    def _make(owner: Users, name: str = "Condo 12A", status: str = "available") -> Asset:
        asset = Asset(owner_id=owner.id, name=name, status=status)
        db.add(asset)
        db.commit()
        db.refresh(asset)
        return asset

    return _make


@pytest.fixture
def asset(make_asset, owner):
    return make_asset(owner)


@pytest.fixture
def make_lease(db):
    def _make(asset: Asset, tenant: Users, **overrides) -> Lease:
        values = dict(
            start_date=date(2024, 2, 1),
            end_date=date(2024, 7, 31),
            signed_date=date(2024, 1, 1),
            rent_amount=Decimal("10000"),
            deposit_amount=Decimal("8000"),
            insurance_amount=Decimal("2000"),
            status="active",
        )
        values.update(overrides)
        lease = Lease(asset_id=asset.id, tenant_id=tenant.id, **values)
        db.add(lease)
        db.commit()
        db.refresh(lease)
        return lease

    return _make


@pytest.fixture
def lease(make_lease, asset, tenant):
    return make_lease(asset, tenant)


@pytest.fixture
def make_payment(db):
    def _make(
        lease: Lease,
        due_date: date,
        amount=Decimal("10000"),
        status: str = "pending",
        payment_type: str = "rent",
        **extra,
    ) -> LeasePayment:
        payment = LeasePayment(
            lease_id=lease.id,
            amount=amount,
            due_date=due_date,
            status=status,
            payment_type=payment_type,
            proof_images=[],
            **extra,
        )
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment

    return _make


def token_for(user: Users) -> UserToken:
    return UserToken(user_id=user.id, role=user.role, name=user.full_name, status=user.status)


@pytest.fixture
def as_token():
    return token_for


# =============================================================================
# HTTP
# =============================================================================


@pytest.fixture
def current_user():
    """Mutable holder for the token the overridden auth dependency returns."""
    return {"token": None}


@pytest.fixture
def login(current_user):
    def _login(user: Users) -> UserToken:
        current_user["token"] = token_for(user)
        return current_user["token"]

    return _login


@pytest.fixture
def client(session_factory, current_user):
    def override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_user():
        return current_user["token"]

    app.dependency_overrides[get_rental_db] = override_db
    app.dependency_overrides[validate_current_token] = override_user
    # no context manager: the lifespan (create_all on the real engine, sweep thread) stays off
    yield TestClient(app)
    app.dependency_overrides.clear()
