"""
Domain events
Published by the services when rooms, reservations and bookings change state
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, Dict, Any


class EventType(str, Enum):
    """Event types"""
    ROOM_STATUS_CHANGED = "room.status_changed"

    RESERVATION_CREATED = "reservation.created"
    RESERVATION_STATUS_CHANGED = "reservation.status_changed"
    RESERVATION_DELETED = "reservation.deleted"

    BOOKING_CREATED = "booking.created"
    BOOKING_STATUS_CHANGED = "booking.status_changed"
    BOOKING_STAFF_ASSIGNED = "booking.staff_assigned"


@dataclass
class BaseEventData:
    """Base class for event payloads"""
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, datetime):
                result[key] = value.isoformat()
        return result


@dataclass
class RoomStatusChangedData(BaseEventData):
    room_id: int = 0
    room_number: str = ""
    old_status: str = ""
    new_status: str = ""


@dataclass
class ReservationCreatedData(BaseEventData):
    reservation_id: int = 0
    reservation_number: str = ""
    room_id: int = 0
    guest_name: str = ""
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    number_of_nights: int = 0
    total_amount: float = 0.0
    created_by: Optional[int] = None


@dataclass
class ReservationStatusChangedData(BaseEventData):
    reservation_id: int = 0
    reservation_number: str = ""
    old_status: str = ""
    new_status: str = ""
    changed_by: Optional[int] = None


@dataclass
class ReservationDeletedData(BaseEventData):
    reservation_id: int = 0
    reservation_number: str = ""
    deleted_bookings: int = 0


@dataclass
class BookingCreatedData(BaseEventData):
    booking_id: int = 0
    booking_number: str = ""
    reservation_id: int = 0
    service_type: str = ""
    total_amount: float = 0.0


@dataclass
class BookingStatusChangedData(BaseEventData):
    booking_id: int = 0
    booking_number: str = ""
    old_status: str = ""
    new_status: str = ""


@dataclass
class BookingStaffAssignedData(BaseEventData):
    booking_id: int = 0
    booking_number: str = ""
    staff_id: int = 0
    previous_staff_id: Optional[int] = None
