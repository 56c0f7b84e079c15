import os

os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///./bustravel_test.db")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from bustravel.auth.service import UserService
from bustravel.auth.utils import create_access_token
from bustravel.clock import get_clock
from bustravel.database import Base, build_engine, get_db
from bustravel.main import app
from bustravel.models import City, Journey, UserRole

NOW = datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)

JAKARTA_PICKUP = (-6.21, 106.85)
BANDUNG_PICKUP = (-6.92, 107.62)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def engine(tmp_path):
    # File-backed so that sessions on different threads see the same data
    engine = build_engine(f"sqlite:///{tmp_path / 'bustravel.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def cities(db):
    jakarta = City(name="Jakarta", center_lat=-6.2088, center_lng=106.8456, pickup_radius_km=10.0)
    bandung = City(name="Bandung", center_lat=-6.9175, center_lng=107.6191, pickup_radius_km=7.0)
    db.add_all([jakarta, bandung])
    db.commit()
    return {"jakarta": jakarta, "bandung": bandung}


@pytest.fixture
def users(db):
    def create(email, name, role):
        return UserService.create_user(db, email=email, name=name, password="secret123", role=role)

    return {
        "admin": create("admin@bustravel.com", "Admin", UserRole.ADMIN),
        "driver": create("driver@bustravel.com", "Dewi Driver", UserRole.DRIVER),
        "alice": create("alice@bustravel.com", "Alice", UserRole.TRAVELLER),
        "bob": create("bob@bustravel.com", "Bob", UserRole.TRAVELLER),
    }


@pytest.fixture
def make_journey(db, cities):
    def make(total_seats=2, origin="jakarta", destination="bandung", departs_in=timedelta(days=1), driver=None):
        journey = Journey(
            origin_city_id=cities[origin].id,
            destination_city_id=cities[destination].id,
            departure_time=NOW + departs_in,
            total_seats=total_seats,
            reserved_seats=0,
            driver_id=driver.id if driver is not None else None
        )
        db.add(journey)
        db.commit()
        return journey
    return make


@pytest.fixture
def client(session_factory, clock):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def headers(user):
        token = create_access_token(user.id, user.email, user.role)
        return {"Authorization": f"Bearer {token}"}
    return headers
