"""
Booking service
Ancillary services (spa, restaurant, transport ...) sold against a reservation
"""
from typing import List, Optional, Callable, Tuple
from datetime import datetime, date, time, timedelta
import logging
from sqlalchemy.orm import Session
from erp_reservations.models.entities import (
    Booking, BookingStatus, ServiceType, Reservation, Staff, BOOKABLE_RESERVATION_STATUSES
)
from erp_reservations.models.schemas import BookingBase, BookingCreate, BookingUpdate
from erp_reservations.models.events import (
    EventType, BookingCreatedData, BookingStatusChangedData, BookingStaffAssignedData
)
from erp_reservations.services.event_bus import event_bus, Event
from erp_reservations.services.numbering import insert_with_number, BOOKING_PREFIX
from erp_reservations.services.pagination import apply_sort, paginate
from erp_reservations.services.pricing import calculate_booking_total
from erp_reservations.services.reservation_service import reservation_summary
from erp_reservations.services.staff_service import staff_summary
from erp_reservations.services.errors import ServiceError, NotFoundError

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    'id': Booking.id,
    'booking_number': Booking.booking_number,
    'service_type': Booking.service_type,
    'scheduled_date': Booking.scheduled_date,
    'status': Booking.status,
    'total_amount': Booking.total_amount,
    'created_at': Booking.created_at,
}


def day_window(day: date) -> Tuple[datetime, datetime]:
    """[00:00 of day, 00:00 of the next day)"""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class BookingService:
    """Booking service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish

    # ============== Queries ==============

    def get_bookings(self, status: Optional[BookingStatus] = None,
                     service_type: Optional[ServiceType] = None,
                     scheduled_date: Optional[date] = None,
                     reservation_id: Optional[int] = None,
                     assigned_staff_id: Optional[int] = None,
                     page: int = 1, limit: int = 10,
                     sort_by: str = 'scheduled_date',
                     sort_order: str = 'asc') -> Tuple[List[Booking], int]:
        query = self.db.query(Booking)

        if status is not None:
            query = query.filter(Booking.status == status)
        if service_type is not None:
            query = query.filter(Booking.service_type == service_type)
        if scheduled_date is not None:
            start, end = day_window(scheduled_date)
            query = query.filter(Booking.scheduled_date >= start, Booking.scheduled_date < end)
        if reservation_id is not None:
            query = query.filter(Booking.reservation_id == reservation_id)
        if assigned_staff_id is not None:
            query = query.filter(Booking.assigned_staff_id == assigned_staff_id)

        query = apply_sort(query, SORTABLE_FIELDS, sort_by, sort_order, default='scheduled_date')
        return paginate(query, page, limit)

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def get_booking_or_404(self, booking_id: int) -> Booking:
        booking = self.get_booking(booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def get_bookings_by_reservation(self, reservation_id: int) -> List[Booking]:
        return self.db.query(Booking).filter(
            Booking.reservation_id == reservation_id
        ).order_by(Booking.scheduled_date, Booking.id).all()

    def get_bookings_by_staff(self, staff_id: int, day: Optional[date] = None) -> List[Booking]:
        """Bookings assigned to a staff member, optionally on one calendar day"""
        query = self.db.query(Booking).filter(Booking.assigned_staff_id == staff_id)
        if day is not None:
            start, end = day_window(day)
            query = query.filter(Booking.scheduled_date >= start, Booking.scheduled_date < end)
        return query.order_by(Booking.scheduled_date, Booking.scheduled_time, Booking.id).all()

    # ============== Mutations ==============

    def create_booking(self, data: BookingCreate, created_by: Optional[int] = None) -> Booking:
        reservation = self.db.query(Reservation).filter(Reservation.id == data.reservation_id).first()
        if not reservation:
            raise NotFoundError("Reservation not found")
        if reservation.status not in BOOKABLE_RESERVATION_STATUSES:
            logger.warning(
                f"Booking rejected: reservation {reservation.reservation_number} "
                f"is {reservation.status.value}"
            )
            raise ServiceError(f"Cannot create booking for reservation with status: {reservation.status.value}")
        if data.assigned_staff_id is not None:
            self._get_active_staff(data.assigned_staff_id)

        booking = Booking(reservation_id=reservation.id, created_by=created_by)
        self._apply_fields(booking, data)

        insert_with_number(self.db, booking, Booking.booking_number, BOOKING_PREFIX, 'booking_number')
        self._publish_event(Event(
            event_type=EventType.BOOKING_CREATED,
            timestamp=datetime.now(),
            data=BookingCreatedData(
                booking_id=booking.id,
                booking_number=booking.booking_number,
                reservation_id=booking.reservation_id,
                service_type=booking.service_type.value,
                total_amount=float(booking.total_amount)
            ).to_dict(),
            source="booking_service"
        ))
        return booking

    def update_booking(self, booking_id: int, data: BookingUpdate) -> Booking:
        """Full update (PUT semantics); the reservation reference is kept"""
        booking = self.get_booking_or_404(booking_id)
        if data.assigned_staff_id is not None and data.assigned_staff_id != booking.assigned_staff_id:
            self._get_active_staff(data.assigned_staff_id)

        old_status = booking.status
        self._apply_fields(booking, data)

        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"Booking {booking.booking_number} updated, total {booking.total_amount}")

        self._publish_status_change(booking, old_status)
        return booking

    def update_status(self, booking_id: int, status: BookingStatus) -> Booking:
        booking = self.get_booking_or_404(booking_id)

        old_status = booking.status
        booking.status = status
        self.db.commit()
        self.db.refresh(booking)

        self._publish_status_change(booking, old_status)
        return booking

    def assign_staff(self, booking_id: int, staff_id: int) -> Booking:
        booking = self.get_booking_or_404(booking_id)
        staff = self._get_active_staff(staff_id)

        previous_staff_id = booking.assigned_staff_id
        booking.assigned_staff_id = staff.id
        self.db.commit()
        self.db.refresh(booking)
        self._publish_event(Event(
            event_type=EventType.BOOKING_STAFF_ASSIGNED,
            timestamp=datetime.now(),
            data=BookingStaffAssignedData(
                booking_id=booking.id,
                booking_number=booking.booking_number,
                staff_id=staff.id,
                previous_staff_id=previous_staff_id
            ).to_dict(),
            source="booking_service"
        ))
        return booking

    def delete_booking(self, booking_id: int) -> bool:
        booking = self.get_booking_or_404(booking_id)
        booking_number = booking.booking_number
        self.db.delete(booking)
        self.db.commit()
        logger.info(f"Booking {booking_number} deleted")
        return True

    # ============== Helpers ==============

    def _get_active_staff(self, staff_id: int) -> Staff:
        staff = self.db.query(Staff).filter(Staff.id == staff_id).first()
        if not staff or not staff.is_active:
            raise NotFoundError("Staff member not found")
        return staff

    @staticmethod
    def _apply_fields(booking: Booking, data: BookingBase) -> None:
        total = calculate_booking_total(data.price, data.quantity)
        booking.service_type = data.service_type
        booking.service_name = data.service_name
        booking.description = data.description
        booking.scheduled_date = data.scheduled_date
        booking.scheduled_time = data.scheduled_time
        booking.duration = data.duration
        booking.price = data.price
        booking.quantity = data.quantity
        booking.total_amount = total
        booking.status = data.status
        booking.payment_status = data.payment_status
        booking.assigned_staff_id = data.assigned_staff_id
        booking.special_instructions = data.special_instructions
        booking.notes = data.notes

    def _publish_status_change(self, booking: Booking, old_status: BookingStatus) -> None:
        if old_status == booking.status:
            return
        self._publish_event(Event(
            event_type=EventType.BOOKING_STATUS_CHANGED,
            timestamp=datetime.now(),
            data=BookingStatusChangedData(
                booking_id=booking.id,
                booking_number=booking.booking_number,
                old_status=old_status.value,
                new_status=booking.status.value
            ).to_dict(),
            source="booking_service"
        ))

    # ============== Detail ==============

    def get_booking_detail(self, booking: Booking) -> dict:
        """Booking with reservation summary, assigned staff and creator"""
        return {
            'id': booking.id,
            'booking_number': booking.booking_number,
            'reservation_id': booking.reservation_id,
            'reservation': reservation_summary(booking.reservation),
            'service_type': booking.service_type,
            'service_name': booking.service_name,
            'description': booking.description,
            'scheduled_date': booking.scheduled_date,
            'scheduled_time': booking.scheduled_time,
            'duration': booking.duration,
            'price': booking.price,
            'quantity': booking.quantity,
            'total_amount': booking.total_amount,
            'status': booking.status,
            'payment_status': booking.payment_status,
            'assigned_staff_id': booking.assigned_staff_id,
            'assigned_staff': staff_summary(booking.assigned_staff),
            'special_instructions': booking.special_instructions,
            'notes': booking.notes,
            'created_by': staff_summary(booking.creator),
            'created_at': booking.created_at,
            'updated_at': booking.updated_at,
        }
