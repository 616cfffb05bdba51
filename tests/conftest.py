"""
Pytest configuration and shared fixtures
"""
import os

# the application engine must never touch a file database during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from erp_reservations.database import Base, get_db
from erp_reservations.models.entities import (
    Staff, StaffRole, Room, RoomType, RoomStatus, Reservation, ReservationStatus
)
from erp_reservations.security.auth import get_password_hash, create_access_token
from erp_reservations.main import app
from factories import day


@pytest.fixture(scope="function")
def db_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def published_events():
    """Collects events from services built with event_publisher=published_events.append"""
    return []


# ============== Staff / auth ==============

def _create_staff(db_session, username: str, role: StaffRole, first_name: str, last_name: str) -> Staff:
    staff = Staff(
        username=username,
        password_hash=get_password_hash("secret123"),
        first_name=first_name,
        last_name=last_name,
        email=f"{username}@hotel.test",
        role=role,
        is_active=True
    )
    db_session.add(staff)
    db_session.commit()
    db_session.refresh(staff)
    return staff


@pytest.fixture
def manager(db_session):
    return _create_staff(db_session, "manager", StaffRole.MANAGER, "Maria", "Lopez")


@pytest.fixture
def receptionist(db_session):
    return _create_staff(db_session, "front1", StaffRole.RECEPTIONIST, "Tom", "Baker")


@pytest.fixture
def service_staff(db_session):
    return _create_staff(db_session, "spa1", StaffRole.SERVICE, "Ana", "Silva")


@pytest.fixture
def manager_auth_headers(manager):
    return {"Authorization": f"Bearer {create_access_token(manager.id, manager.role)}"}


@pytest.fixture
def receptionist_auth_headers(receptionist):
    return {"Authorization": f"Bearer {create_access_token(receptionist.id, receptionist.role)}"}


# ============== Rooms / reservations ==============

def _create_room(db_session, room_number: str, room_type: RoomType, price: str,
                 floor: int = 1, capacity: int = 2, amenities=None,
                 status: RoomStatus = RoomStatus.AVAILABLE) -> Room:
    room = Room(
        room_number=room_number,
        room_type=room_type,
        capacity=capacity,
        price_per_night=Decimal(price),
        amenities=amenities or [],
        status=status,
        floor=floor,
        images=[],
        is_active=True
    )
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture
def sample_room(db_session):
    """Room 101, Standard, 100.00 per night"""
    return _create_room(db_session, "101", RoomType.STANDARD, "100.00", amenities=["WiFi", "TV"])


@pytest.fixture
def sample_room_201(db_session):
    """Room 201, Suite, 250.00 per night"""
    return _create_room(
        db_session, "201", RoomType.SUITE, "250.00", floor=2, capacity=4,
        amenities=["WiFi", "Jacuzzi", "Ocean View"]
    )


@pytest.fixture
def room_factory(db_session):
    def factory(room_number: str, room_type: RoomType = RoomType.STANDARD, price: str = "100.00", **kwargs):
        return _create_room(db_session, room_number, room_type, price, **kwargs)
    return factory


@pytest.fixture
def confirmed_reservation(db_session, sample_room):
    """Confirmed stay in room 101 from day 1 to day 3"""
    reservation = Reservation(
        reservation_number="RES000001",
        guest_first_name="Jane",
        guest_last_name="Doe",
        guest_email="jane.doe@example.com",
        guest_phone="+1 555 0100",
        room_id=sample_room.id,
        check_in=day(1),
        check_out=day(3),
        number_of_guests=2,
        number_of_nights=2,
        total_amount=Decimal("200.00"),
        status=ReservationStatus.CONFIRMED
    )
    db_session.add(reservation)
    db_session.commit()
    db_session.refresh(reservation)
    return reservation
