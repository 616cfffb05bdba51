"""
Reservation service
Guest stays against a room. Holds the double-booking guard and keeps
number_of_nights / total_amount derived from the dates and the room price.
"""
from typing import List, Optional, Callable, Tuple
from datetime import datetime
from decimal import Decimal
import logging
from sqlalchemy.orm import Session
from erp_reservations.models.entities import (
    Reservation, Room, RoomStatus, RoomType, ReservationStatus, BLOCKING_RESERVATION_STATUSES
)
from erp_reservations.models.schemas import ReservationCreate, ReservationUpdate, GuestInfo
from erp_reservations.models.events import (
    EventType, ReservationCreatedData, ReservationStatusChangedData, ReservationDeletedData
)
from erp_reservations.services.event_bus import event_bus, Event
from erp_reservations.services.availability_service import AvailabilityService
from erp_reservations.services.numbering import insert_with_number, RESERVATION_PREFIX
from erp_reservations.services.pagination import apply_sort, paginate
from erp_reservations.services.pricing import calculate_nights, calculate_reservation_total
from erp_reservations.services.staff_service import staff_summary
from erp_reservations.services.errors import ServiceError, NotFoundError, ConflictError

logger = logging.getLogger(__name__)

ROOM_NOT_AVAILABLE_FOR_DATES = "Room is not available for the selected dates"

SORTABLE_FIELDS = {
    'id': Reservation.id,
    'reservation_number': Reservation.reservation_number,
    'check_in': Reservation.check_in,
    'check_out': Reservation.check_out,
    'status': Reservation.status,
    'total_amount': Reservation.total_amount,
    'guest_last_name': Reservation.guest_last_name,
    'created_at': Reservation.created_at,
}


class ReservationService:
    """Reservation service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self.availability = AvailabilityService(db)
        self._publish_event = event_publisher or event_bus.publish

    # ============== Queries ==============

    def get_reservations(self, status: Optional[ReservationStatus] = None,
                         room_type: Optional[RoomType] = None,
                         guest_email: Optional[str] = None,
                         check_in: Optional[datetime] = None,
                         check_out: Optional[datetime] = None,
                         page: int = 1, limit: int = 10,
                         sort_by: str = 'created_at',
                         sort_order: str = 'desc') -> Tuple[List[Reservation], int]:
        """
        Filtered, sorted page of reservations plus the total match count

        check_in / check_out bound the stay: check_in >= from, check_out <= to.
        """
        query = self.db.query(Reservation)

        if status is not None:
            query = query.filter(Reservation.status == status)
        if room_type is not None:
            query = query.join(Room, Reservation.room_id == Room.id).filter(Room.room_type == room_type)
        if guest_email:
            # stored lowercased
            query = query.filter(
                Reservation.guest_email.contains(guest_email.strip().lower(), autoescape=True)
            )
        if check_in is not None:
            query = query.filter(Reservation.check_in >= check_in)
        if check_out is not None:
            query = query.filter(Reservation.check_out <= check_out)

        query = apply_sort(query, SORTABLE_FIELDS, sort_by, sort_order, default='created_at')
        return paginate(query, page, limit)

    def get_reservation(self, reservation_id: int) -> Optional[Reservation]:
        return self.db.query(Reservation).filter(Reservation.id == reservation_id).first()

    def get_reservation_or_404(self, reservation_id: int) -> Reservation:
        reservation = self.get_reservation(reservation_id)
        if not reservation:
            raise NotFoundError("Reservation not found")
        return reservation

    def check_availability(self, room_id: int, check_in: datetime, check_out: datetime) -> dict:
        """{'available': bool, 'conflicting_reservation': number or None}"""
        if check_out <= check_in:
            raise ServiceError("check_out must be later than check_in")
        self._get_room(room_id)
        return self.availability.check_availability(room_id, check_in, check_out)

    # ============== Mutations ==============

    def create_reservation(self, data: ReservationCreate, created_by: Optional[int] = None) -> Reservation:
        room = self._get_room(data.room_id)
        self._ensure_room_free(room.id, data.check_in, data.check_out)

        if room.status != RoomStatus.AVAILABLE or not room.is_active:
            logger.warning(f"Reservation rejected: room {room.room_number} is {room.status.value}")
            raise ServiceError("Room is not available")
        nights, total = self._derived_fields(data.check_in, data.check_out, room)

        reservation = Reservation(
            room_id=room.id,
            check_in=data.check_in,
            check_out=data.check_out,
            number_of_guests=data.number_of_guests,
            status=data.status,
            payment_status=data.payment_status,
            payment_method=data.payment_method,
            special_requests=data.special_requests,
            notes=data.notes,
            number_of_nights=nights,
            total_amount=total,
            created_by=created_by,
            last_modified_by=created_by
        )
        self._apply_guest(reservation, data.guest)

        # the row is flushed before the re-check so a competing insert in
        # the same database shows up as a conflict instead of a double booking
        insert_with_number(
            self.db, reservation, Reservation.reservation_number, RESERVATION_PREFIX,
            'reservation_number',
            before_commit=lambda r: self._ensure_room_free(r.room_id, r.check_in, r.check_out, exclude_id=r.id)
        )

        self._publish_event(Event(
            event_type=EventType.RESERVATION_CREATED,
            timestamp=datetime.now(),
            data=ReservationCreatedData(
                reservation_id=reservation.id,
                reservation_number=reservation.reservation_number,
                room_id=reservation.room_id,
                guest_name=reservation.guest_full_name,
                check_in=reservation.check_in,
                check_out=reservation.check_out,
                number_of_nights=reservation.number_of_nights,
                total_amount=float(reservation.total_amount),
                created_by=created_by
            ).to_dict(),
            source="reservation_service"
        ))
        return reservation

    def update_reservation(self, reservation_id: int, data: ReservationUpdate,
                           modified_by: Optional[int] = None) -> Reservation:
        """Full update (PUT semantics); nights and total are recomputed"""
        reservation = self.get_reservation_or_404(reservation_id)
        room = self._get_room(data.room_id)
        self._ensure_room_free(room.id, data.check_in, data.check_out, exclude_id=reservation.id)
        nights, total = self._derived_fields(data.check_in, data.check_out, room)

        old_status = reservation.status
        reservation.room_id = room.id
        reservation.check_in = data.check_in
        reservation.check_out = data.check_out
        reservation.number_of_guests = data.number_of_guests
        reservation.status = data.status
        reservation.payment_status = data.payment_status
        reservation.payment_method = data.payment_method
        reservation.special_requests = data.special_requests
        reservation.notes = data.notes
        reservation.number_of_nights = nights
        reservation.total_amount = total
        if modified_by is not None:
            reservation.last_modified_by = modified_by
        self._apply_guest(reservation, data.guest)

        self.db.commit()
        self.db.refresh(reservation)
        logger.info(f"Reservation {reservation.reservation_number} updated")

        self._publish_status_change(reservation, old_status, modified_by)
        return reservation

    def update_status(self, reservation_id: int, status: ReservationStatus,
                      modified_by: Optional[int] = None) -> Reservation:
        reservation = self.get_reservation_or_404(reservation_id)

        old_status = reservation.status
        if status in BLOCKING_RESERVATION_STATUSES and old_status not in BLOCKING_RESERVATION_STATUSES:
            # moving into a blocking status claims the room again
            self._ensure_room_free(
                reservation.room_id, reservation.check_in, reservation.check_out,
                exclude_id=reservation.id
            )

        reservation.status = status
        if modified_by is not None:
            reservation.last_modified_by = modified_by
        self.db.commit()
        self.db.refresh(reservation)

        self._publish_status_change(reservation, old_status, modified_by)
        return reservation

    def delete_reservation(self, reservation_id: int) -> bool:
        """Delete the reservation together with its bookings"""
        reservation = self.get_reservation_or_404(reservation_id)

        reservation_number = reservation.reservation_number
        booking_count = len(reservation.bookings)
        self.db.delete(reservation)
        self.db.commit()
        self._publish_event(Event(
            event_type=EventType.RESERVATION_DELETED,
            timestamp=datetime.now(),
            data=ReservationDeletedData(
                reservation_id=reservation_id,
                reservation_number=reservation_number,
                deleted_bookings=booking_count
            ).to_dict(),
            source="reservation_service"
        ))
        return True

    # ============== Helpers ==============

    def _get_room(self, room_id: int) -> Room:
        room = self.db.query(Room).filter(Room.id == room_id).first()
        if not room:
            raise NotFoundError("Room not found")
        return room

    def _ensure_room_free(self, room_id: int, check_in: datetime, check_out: datetime,
                          exclude_id: Optional[int] = None) -> None:
        conflict = self.availability.find_conflicting_reservation(
            room_id, check_in, check_out, exclude_id=exclude_id
        )
        if conflict:
            logger.warning(
                f"Room {room_id} already held by {conflict.reservation_number} "
                f"for {check_in.isoformat()} - {check_out.isoformat()}"
            )
            raise ConflictError(ROOM_NOT_AVAILABLE_FOR_DATES)

    @staticmethod
    def _apply_guest(reservation: Reservation, guest: GuestInfo) -> None:
        reservation.guest_first_name = guest.first_name
        reservation.guest_last_name = guest.last_name
        reservation.guest_email = guest.email
        reservation.guest_phone = guest.phone
        reservation.guest_address = guest.address.model_dump() if guest.address else None
        reservation.guest_id_type = guest.id_type
        reservation.guest_id_number = guest.id_number

    @staticmethod
    def _derived_fields(check_in: datetime, check_out: datetime, room: Room) -> Tuple[int, Decimal]:
        """(number_of_nights, total_amount) for a stay"""
        nights = calculate_nights(check_in, check_out)
        return nights, calculate_reservation_total(nights, room.price_per_night)

    def _publish_status_change(self, reservation: Reservation, old_status: ReservationStatus,
                               changed_by: Optional[int]) -> None:
        if old_status == reservation.status:
            return
        self._publish_event(Event(
            event_type=EventType.RESERVATION_STATUS_CHANGED,
            timestamp=datetime.now(),
            data=ReservationStatusChangedData(
                reservation_id=reservation.id,
                reservation_number=reservation.reservation_number,
                old_status=old_status.value,
                new_status=reservation.status.value,
                changed_by=changed_by
            ).to_dict(),
            source="reservation_service"
        ))

    # ============== Detail ==============

    def get_reservation_detail(self, reservation: Reservation) -> dict:
        """Reservation with guest, room summary, creator and last modifier"""
        room = reservation.room
        return {
            'id': reservation.id,
            'reservation_number': reservation.reservation_number,
            'guest': guest_detail(reservation),
            'room_id': reservation.room_id,
            'room': {
                'id': room.id,
                'room_number': room.room_number,
                'room_type': room.room_type,
                'price_per_night': room.price_per_night,
            } if room else None,
            'check_in': reservation.check_in,
            'check_out': reservation.check_out,
            'number_of_guests': reservation.number_of_guests,
            'number_of_nights': reservation.number_of_nights,
            'total_amount': reservation.total_amount,
            'status': reservation.status,
            'payment_status': reservation.payment_status,
            'payment_method': reservation.payment_method,
            'special_requests': reservation.special_requests,
            'notes': reservation.notes,
            'created_by': staff_summary(reservation.creator),
            'last_modified_by': staff_summary(reservation.modifier),
            'created_at': reservation.created_at,
            'updated_at': reservation.updated_at,
        }


def guest_detail(reservation: Reservation) -> dict:
    return {
        'first_name': reservation.guest_first_name,
        'last_name': reservation.guest_last_name,
        'full_name': reservation.guest_full_name,
        'email': reservation.guest_email,
        'phone': reservation.guest_phone,
        'address': reservation.guest_address,
        'id_type': reservation.guest_id_type,
        'id_number': reservation.guest_id_number,
    }


def reservation_summary(reservation: Optional[Reservation]) -> Optional[dict]:
    if reservation is None:
        return None
    return {
        'id': reservation.id,
        'reservation_number': reservation.reservation_number,
        'guest_name': reservation.guest_full_name,
        'guest_email': reservation.guest_email,
        'check_in': reservation.check_in,
        'check_out': reservation.check_out,
        'status': reservation.status,
    }
