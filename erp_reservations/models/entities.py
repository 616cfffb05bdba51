"""
Entity definitions
Rooms, reservations (with the embedded guest record), ancillary bookings and staff
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Text, JSON,
    Enum as SQLEnum, Boolean, Numeric
)
from sqlalchemy.orm import relationship
from erp_reservations.database import Base


# ============== Enums ==============

class RoomType(str, Enum):
    STANDARD = "Standard"
    DELUXE = "Deluxe"
    SUITE = "Suite"
    EXECUTIVE = "Executive"
    PRESIDENTIAL = "Presidential"


class RoomStatus(str, Enum):
    AVAILABLE = "Available"
    OCCUPIED = "Occupied"
    MAINTENANCE = "Maintenance"
    OUT_OF_ORDER = "Out of Order"


class Amenity(str, Enum):
    WIFI = "WiFi"
    TV = "TV"
    MINI_BAR = "Mini Bar"
    BALCONY = "Balcony"
    OCEAN_VIEW = "Ocean View"
    CITY_VIEW = "City View"
    AIR_CONDITIONING = "Air Conditioning"
    ROOM_SERVICE = "Room Service"
    SAFE = "Safe"
    JACUZZI = "Jacuzzi"


class ReservationStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CHECKED_IN = "Checked In"
    CHECKED_OUT = "Checked Out"
    CANCELLED = "Cancelled"
    NO_SHOW = "No Show"


# Statuses that hold a room for their date range
BLOCKING_RESERVATION_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN)

# Reservations that ancillary services can be booked against
BOOKABLE_RESERVATION_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN)


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    PARTIALLY_PAID = "Partially Paid"
    REFUNDED = "Refunded"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "Credit Card"
    DEBIT_CARD = "Debit Card"
    CASH = "Cash"
    BANK_TRANSFER = "Bank Transfer"
    ONLINE_PAYMENT = "Online Payment"


class IdType(str, Enum):
    PASSPORT = "Passport"
    DRIVER_LICENSE = "Driver License"
    NATIONAL_ID = "National ID"
    OTHER = "Other"


class ServiceType(str, Enum):
    ROOM_SERVICE = "Room Service"
    SPA = "Spa"
    RESTAURANT = "Restaurant"
    CONFERENCE_ROOM = "Conference Room"
    EVENT_HALL = "Event Hall"
    TRANSPORTATION = "Transportation"
    TOUR = "Tour"
    OTHER = "Other"


class BookingStatus(str, Enum):
    SCHEDULED = "Scheduled"
    CONFIRMED = "Confirmed"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    NO_SHOW = "No Show"


class StaffRole(str, Enum):
    MANAGER = "manager"
    RECEPTIONIST = "receptionist"
    SERVICE = "service"


def _enum_values(enum_cls):
    # store the human readable value ("Checked In"), not the member name
    return [member.value for member in enum_cls]


def _enum_column(enum_cls, **kwargs):
    return Column(
        SQLEnum(enum_cls, values_callable=_enum_values, native_enum=False, length=30),
        **kwargs
    )


# ============== Entities ==============

class Staff(Base):
    """
    Hotel staff member
    Referenced as creator / modifier of reservations and as assignee of bookings
    """
    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(254))
    phone = Column(String(30))
    role = _enum_column(StaffRole, nullable=False, default=StaffRole.RECEPTIONIST)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assigned_bookings = relationship(
        "Booking", foreign_keys="Booking.assigned_staff_id", back_populates="assigned_staff"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Room(Base):
    """
    Physical room - inventory with an independent lifecycle
    """
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    room_number = Column(String(20), unique=True, nullable=False, index=True)
    room_type = _enum_column(RoomType, nullable=False, index=True)
    capacity = Column(Integer, nullable=False)
    price_per_night = Column(Numeric(10, 2), nullable=False)
    amenities = Column(JSON, default=list)              # list of Amenity values
    status = _enum_column(RoomStatus, default=RoomStatus.AVAILABLE, index=True)
    floor = Column(Integer, nullable=False, index=True)
    description = Column(String(500))
    images = Column(JSON, default=list)                 # image URLs
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    reservations = relationship("Reservation", back_populates="room")


class Reservation(Base):
    """
    A guest's stay in one room for a date range
    The guest record is embedded: a reservation exclusively owns its guest data.
    number_of_nights and total_amount are derived on every save.
    """
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    reservation_number = Column(String(20), unique=True, nullable=False, index=True)

    # embedded guest
    guest_first_name = Column(String(100), nullable=False)
    guest_last_name = Column(String(100), nullable=False)
    guest_email = Column(String(254), nullable=False, index=True)
    guest_phone = Column(String(30), nullable=False)
    guest_address = Column(JSON)                        # street, city, state, zip_code, country
    guest_id_type = _enum_column(IdType, nullable=True)
    guest_id_number = Column(String(50))

    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    check_in = Column(DateTime, nullable=False, index=True)
    check_out = Column(DateTime, nullable=False, index=True)
    number_of_guests = Column(Integer, nullable=False)
    number_of_nights = Column(Integer, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = _enum_column(ReservationStatus, default=ReservationStatus.PENDING, index=True)
    payment_status = _enum_column(PaymentStatus, default=PaymentStatus.PENDING)
    payment_method = _enum_column(PaymentMethod, nullable=True)
    special_requests = Column(Text)
    notes = Column(Text)
    created_by = Column(Integer, ForeignKey("staff.id"))
    last_modified_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    room = relationship("Room", back_populates="reservations")
    bookings = relationship(
        "Booking", back_populates="reservation", cascade="all, delete-orphan"
    )
    creator = relationship("Staff", foreign_keys=[created_by])
    modifier = relationship("Staff", foreign_keys=[last_modified_by])

    @property
    def guest_full_name(self) -> str:
        return f"{self.guest_first_name} {self.guest_last_name}"


class Booking(Base):
    """
    Ancillary service (spa, restaurant, ...) purchased against a reservation
    total_amount = price * quantity, derived on every save.
    """
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_number = Column(String(20), unique=True, nullable=False, index=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id"), nullable=False, index=True)
    service_type = _enum_column(ServiceType, nullable=False, index=True)
    service_name = Column(String(200), nullable=False)
    description = Column(Text)
    scheduled_date = Column(DateTime, nullable=False, index=True)
    scheduled_time = Column(String(10), nullable=False)
    duration = Column(Integer, nullable=False)           # minutes
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = _enum_column(BookingStatus, default=BookingStatus.SCHEDULED, index=True)
    payment_status = _enum_column(PaymentStatus, default=PaymentStatus.PENDING)
    assigned_staff_id = Column(Integer, ForeignKey("staff.id"), index=True)
    special_instructions = Column(Text)
    notes = Column(Text)
    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    reservation = relationship("Reservation", back_populates="bookings")
    assigned_staff = relationship(
        "Staff", foreign_keys=[assigned_staff_id], back_populates="assigned_bookings"
    )
    creator = relationship("Staff", foreign_keys=[created_by])
