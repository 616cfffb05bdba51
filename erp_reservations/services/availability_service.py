"""
Room availability - the double-booking guard

A reservation in a blocking status (Confirmed, Checked In) holds its room for
the half-open range [check_in, check_out): two ranges intersect when each one
starts before the other ends, so a check-out and a check-in on the same day do
not conflict.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from erp_reservations.models.entities import Reservation, BLOCKING_RESERVATION_STATUSES


class AvailabilityService:
    """Overlap queries against existing reservations"""

    def __init__(self, db: Session):
        self.db = db

    def _blocking_reservations(self, check_in: datetime, check_out: datetime):
        return self.db.query(Reservation).filter(
            Reservation.status.in_(BLOCKING_RESERVATION_STATUSES),
            Reservation.check_in < check_out,
            Reservation.check_out > check_in
        )

    def find_conflicting_reservation(self, room_id: int, check_in: datetime, check_out: datetime,
                                     exclude_id: Optional[int] = None) -> Optional[Reservation]:
        """First blocking reservation of the room that intersects the range"""
        query = self._blocking_reservations(check_in, check_out).filter(
            Reservation.room_id == room_id
        )
        if exclude_id is not None:
            query = query.filter(Reservation.id != exclude_id)
        return query.order_by(Reservation.check_in).first()

    def check_availability(self, room_id: int, check_in: datetime, check_out: datetime) -> dict:
        conflict = self.find_conflicting_reservation(room_id, check_in, check_out)
        return {
            'available': conflict is None,
            'conflicting_reservation': conflict.reservation_number if conflict else None
        }

    def booked_room_ids(self, check_in: datetime, check_out: datetime) -> List[int]:
        """Rooms held by a blocking reservation somewhere in the range"""
        rows = self._blocking_reservations(check_in, check_out).with_entities(
            Reservation.room_id
        ).distinct().all()
        return [room_id for room_id, in rows]
