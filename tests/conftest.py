import os
import secrets
import sys
from datetime import date
from pathlib import Path
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Ensure project root on sys.path so 'hoarding_app' resolves when running from a checkout
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from hoarding_app.config import AUTH_SETTINGS  # noqa: E402

# Minimum bcrypt cost keeps the auth tests fast
AUTH_SETTINGS["bcrypt_rounds"] = 4

from hoarding_app.main import app  # noqa: E402
from hoarding_app.database import Base  # noqa: E402
from hoarding_app.api import deps  # noqa: E402
"""Pytest fixtures and factories.

Important: SQLAlchemy relationship configuration requires all model modules to be imported
before Base.metadata.create_all(), otherwise back_populates targets might not exist yet.
"""
from hoarding_app.models.db import User, Hoarding, Advertisement  # noqa: E402
from hoarding_app.models.db.enums import UserRole  # noqa: E402
from hoarding_app.security import get_password_hash, create_access_token  # noqa: E402
from hoarding_app.utils.ratelimiter import rate_limiter  # noqa: E402

DEFAULT_PASSWORD = "password123"

# File-based SQLite so allocator threads and the API each get their own connection
SQLALCHEMY_TEST_URL = "sqlite+pysqlite:///./test_hoardings.db"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False, "timeout": 30},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Startup hooks, health checks and seeding resolve SessionLocal through the module
import hoarding_app.database as _app_database  # noqa: E402
_app_database.SessionLocal = TestingSessionLocal  # type: ignore
_app_database.engine = engine  # type: ignore

@pytest.fixture(scope="session", autouse=True)
def create_test_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    try:
        os.remove("test_hoardings.db")
    except OSError:
        pass

@pytest.fixture(autouse=True)
def _isolate_rate_limits():
    """Per-test reset of the in-memory rate limiter buckets."""
    rate_limiter.reset()
    yield
    rate_limiter.reset()

@pytest.fixture()
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture()
def session_factory():
    return TestingSessionLocal

# Override dependency
def _override_get_db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

app.dependency_overrides[deps.get_db] = _override_get_db

@pytest.fixture()
def client():
    return TestClient(app)

@pytest.fixture()
def today() -> date:
    from hoarding_app.utils import utc_today
    return utc_today()

# ---------- Data factory helpers ----------

@pytest.fixture()
def user_factory(db_session):
    def _create(role: UserRole = UserRole.ADVERTISER, *, email: str | None = None, password: str = DEFAULT_PASSWORD):
        if email is None:
            email = f"{role.value.lower()}_{secrets.token_hex(4)}@example.com"
        user = User(
            name=f"Test {role.value.title()} {secrets.token_hex(2)}",
            email=email,
            password_hash=get_password_hash(password),
            phone="9876543210",
            gov_id_type="PAN",
            gov_id_no=f"ID{secrets.token_hex(3)}",
            role=role,
            is_active=True,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create

@pytest.fixture()
def hoarding_factory(db_session, user_factory):
    def _create(owner: User | None = None, *, address: str = "MG Road Junction"):
        owner = owner or user_factory(UserRole.OWNER)
        h = Hoarding(
            owner_id=owner.id,
            height=10.0,
            width=20.0,
            address=address,
            latitude=20.2961,
            longitude=85.8245,
            installation_date=date(2024, 1, 1),
            is_available=True,
        )
        db_session.add(h)
        db_session.commit()
        db_session.refresh(h)
        return h
    return _create

@pytest.fixture()
def advertisement_factory(db_session, user_factory):
    def _create(advertiser: User | None = None, *, approved: bool = True, title: str = "Monsoon Sale"):
        advertiser = advertiser or user_factory(UserRole.ADVERTISER)
        ad = Advertisement(
            advertiser_id=advertiser.id,
            title=title,
            description="Up to 50% off on all umbrellas",
            category="Retail",
            content_url="https://example.com/ad.png",
            approved=approved,
        )
        db_session.add(ad)
        db_session.commit()
        db_session.refresh(ad)
        return ad
    return _create

def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}

@pytest.fixture()
def auth_header():
    return bearer

@pytest.fixture()
def booking_setup(user_factory, hoarding_factory, advertisement_factory):
    """An owner's hoarding plus an advertiser holding one approved advertisement."""
    owner = user_factory(UserRole.OWNER)
    advertiser = user_factory(UserRole.ADVERTISER)
    hoarding = hoarding_factory(owner)
    ad = advertisement_factory(advertiser)
    return {"owner": owner, "advertiser": advertiser, "hoarding": hoarding, "ad": ad}

