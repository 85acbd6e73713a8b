# Test configuration must be in the environment before the app is imported
import asyncio
import os
import shutil
import tempfile
from datetime import datetime, timedelta
from decimal import Decimal

_TMP_DIR = tempfile.mkdtemp(prefix="rentals-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/test_rentals.db"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from rentals.core.security import create_access_token, get_password_hash
from rentals.db.base import Base
from rentals.db.models import Booking, Category, Property, PropertyType, User
from rentals.db.session import get_db
from rentals.main import app

# --- Test Database Setup ---
# NullPool: every TestClient and asyncio.run() call gets its own event loop,
# so connections must never outlive the loop that opened them.
engine = create_async_engine(os.environ["DATABASE_URL"], poolclass=NullPool)
TestingSessionLocal = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

PASSWORD = "Secret@123"


def run(coro):
    """Run a coroutine from a synchronous test."""
    return asyncio.run(coro)


async def _reset_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _persist(*objs):
    async with TestingSessionLocal() as session:
        session.add_all(objs)
        await session.commit()
    return objs


def persist(*objs):
    """Insert ORM objects and return them with their ids filled in."""
    saved = run(_persist(*objs))
    return saved[0] if len(saved) == 1 else saved


async def _fetch(model, pk):
    async with TestingSessionLocal() as session:
        return await session.get(model, pk)


def fetch(model, pk):
    return run(_fetch(model, pk))


def day(offset: int, hour: int = 12) -> datetime:
    """Noon (by default) ``offset`` days from today, naive UTC."""
    base = datetime.utcnow().replace(hour=hour, minute=0, second=0, microsecond=0)
    return base + timedelta(days=offset)


def auth(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


# --- Database Management Fixtures ---
@pytest.fixture(autouse=True)
def fresh_db():
    """Every test starts from empty tables."""
    run(_reset_schema())
    yield


@pytest.fixture(scope="session", autouse=True)
def cleanup_tmp_dir():
    yield
    shutil.rmtree(_TMP_DIR, ignore_errors=True)


# --- API Test Client Fixture ---
@pytest.fixture
def client(mocker):
    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    # the startup hook creates tables through this engine
    mocker.patch("rentals.main.engine", engine)
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# --- Data Fixtures ---
def make_user(name: str, email: str, role: str) -> User:
    return User(
        name=name,
        email=email,
        hashed_password=get_password_hash(PASSWORD),
        role=role,
        is_verified=True,
    )


@pytest.fixture
def admin():
    return persist(make_user("Admin", "admin@test.io", "admin"))


@pytest.fixture
def host():
    return persist(make_user("Hannah Host", "host@test.io", "host"))


@pytest.fixture
def other_host():
    return persist(make_user("Oscar Host", "oscar@test.io", "host"))


@pytest.fixture
def guest():
    return persist(make_user("Gina Guest", "guest@test.io", "guest"))


@pytest.fixture
def other_guest():
    return persist(make_user("Otto Guest", "otto@test.io", "guest"))


@pytest.fixture
def taxonomy(admin):
    category, ptype = persist(
        Category(name="Apartment", created_by_id=admin.id),
        PropertyType(name="Studio", created_by_id=admin.id),
    )
    return {"category": category, "property_type": ptype}


def make_property(host, taxonomy, **overrides) -> Property:
    fields = dict(
        host_id=host.id,
        category_id=taxonomy["category"].id,
        property_type_id=taxonomy["property_type"].id,
        title="Harbour Loft",
        slug="harbour-loft",
        description="Two rooms over the water",
        price=Decimal("100.00"),
        listing_type="RENT",
        rental_period="DAY",
        bedrooms=2,
        bathrooms=1,
        address="1 Quay Road",
        city="Lisbon",
        country="Portugal",
        is_available=True,
    )
    fields.update(overrides)
    return persist(Property(**fields))


@pytest.fixture
def listing(host, taxonomy):
    return make_property(host, taxonomy)


def make_booking(prop, guest, start, end, status="pending") -> Booking:
    return persist(
        Booking(
            guest_id=guest.id,
            property_id=prop.id,
            start_date=start,
            end_date=end,
            guest_count=1,
            total_price=Decimal("100"),
            status=status,
            payment_status="unpaid",
        )
    )
