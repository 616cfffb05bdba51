"""
Room service
Room inventory, availability lookups and room statistics
Publishes an event whenever a room's status changes
"""
from typing import List, Optional, Callable, Tuple
from datetime import datetime
import logging
from sqlalchemy import func, or_, cast, String
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from erp_reservations.models.entities import Room, RoomStatus, RoomType, Amenity, Reservation
from erp_reservations.models.schemas import RoomCreate, RoomUpdate
from erp_reservations.models.events import EventType, RoomStatusChangedData
from erp_reservations.services.event_bus import event_bus, Event
from erp_reservations.services.availability_service import AvailabilityService
from erp_reservations.services.pagination import apply_sort, paginate
from erp_reservations.services.pricing import to_money
from erp_reservations.services.errors import ServiceError, NotFoundError, ConflictError

logger = logging.getLogger(__name__)

DUPLICATE_ROOM_NUMBER = "Room number already exists"

SORTABLE_FIELDS = {
    'id': Room.id,
    'room_number': Room.room_number,
    'room_type': Room.room_type,
    'capacity': Room.capacity,
    'price_per_night': Room.price_per_night,
    'floor': Room.floor,
    'status': Room.status,
    'created_at': Room.created_at,
}


class RoomService:
    """Room service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self.availability = AvailabilityService(db)
        # injectable for tests
        self._publish_event = event_publisher or event_bus.publish

    # ============== Queries ==============

    def get_rooms(self, room_type: Optional[RoomType] = None, status: Optional[RoomStatus] = None,
                  floor: Optional[int] = None, min_price: Optional[float] = None,
                  max_price: Optional[float] = None, amenities: Optional[List[Amenity]] = None,
                  is_active: Optional[bool] = None, page: int = 1, limit: int = 10,
                  sort_by: str = 'room_number', sort_order: str = 'asc') -> Tuple[List[Room], int]:
        """Filtered, sorted page of rooms plus the total match count"""
        query = self.db.query(Room)

        if room_type is not None:
            query = query.filter(Room.room_type == room_type)
        if status is not None:
            query = query.filter(Room.status == status)
        if floor is not None:
            query = query.filter(Room.floor == floor)
        if min_price is not None:
            query = query.filter(Room.price_per_night >= min_price)
        if max_price is not None:
            query = query.filter(Room.price_per_night <= max_price)
        if is_active is not None:
            query = query.filter(Room.is_active == is_active)
        if amenities:
            # any of the requested amenities; values are stored as a JSON list of strings
            amenities_text = cast(Room.amenities, String)
            query = query.filter(or_(*[
                amenities_text.like(f'%"{Amenity(a).value}"%') for a in amenities
            ]))

        query = apply_sort(query, SORTABLE_FIELDS, sort_by, sort_order, default='room_number')
        return paginate(query, page, limit)

    def get_room(self, room_id: int) -> Optional[Room]:
        return self.db.query(Room).filter(Room.id == room_id).first()

    def get_room_or_404(self, room_id: int) -> Room:
        room = self.get_room(room_id)
        if not room:
            raise NotFoundError("Room not found")
        return room

    def get_room_by_number(self, room_number: str) -> Optional[Room]:
        return self.db.query(Room).filter(Room.room_number == room_number).first()

    # ============== Mutations ==============

    def create_room(self, data: RoomCreate) -> Room:
        if self.get_room_by_number(data.room_number):
            raise ConflictError(DUPLICATE_ROOM_NUMBER)

        room = Room(**data.model_dump(mode='json'))
        room.price_per_night = data.price_per_night
        self.db.add(room)
        self._commit_unique()
        self.db.refresh(room)
        logger.info(f"Room {room.room_number} created")
        return room

    def update_room(self, room_id: int, data: RoomUpdate) -> Room:
        """Full update (PUT semantics)"""
        room = self.get_room_or_404(room_id)

        existing = self.get_room_by_number(data.room_number)
        if existing and existing.id != room_id:
            raise ConflictError(DUPLICATE_ROOM_NUMBER)

        old_status = room.status
        for key, value in data.model_dump(mode='json').items():
            setattr(room, key, value)
        room.price_per_night = data.price_per_night
        room.status = data.status

        self._commit_unique()
        self.db.refresh(room)
        self._publish_status_change(room, old_status)
        return room

    def update_room_status(self, room_id: int, status: RoomStatus) -> Room:
        room = self.get_room_or_404(room_id)

        old_status = room.status
        room.status = status
        self.db.commit()
        self.db.refresh(room)

        self._publish_status_change(room, old_status)
        return room

    def delete_room(self, room_id: int) -> bool:
        room = self.get_room_or_404(room_id)

        reservation_count = self.db.query(Reservation).filter(
            Reservation.room_id == room_id
        ).count()
        if reservation_count > 0:
            raise ServiceError(
                f"Room has {reservation_count} reservation(s) and cannot be deleted; deactivate it instead"
            )

        self.db.delete(room)
        self.db.commit()
        logger.info(f"Room {room.room_number} deleted")
        return True

    def _commit_unique(self) -> None:
        """Commit, turning a room number race into a conflict"""
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if 'room_number' in str(e.orig):
                raise ConflictError(DUPLICATE_ROOM_NUMBER)
            raise

    def _publish_status_change(self, room: Room, old_status: RoomStatus) -> None:
        if old_status == room.status:
            return
        self._publish_event(Event(
            event_type=EventType.ROOM_STATUS_CHANGED,
            timestamp=datetime.now(),
            data=RoomStatusChangedData(
                room_id=room.id,
                room_number=room.room_number,
                old_status=old_status.value if old_status else "",
                new_status=room.status.value
            ).to_dict(),
            source="room_service"
        ))

    # ============== Availability ==============

    def get_available_rooms(self, check_in: datetime, check_out: datetime,
                            room_type: Optional[RoomType] = None,
                            capacity: Optional[int] = None) -> List[Room]:
        """Active rooms in Available status with no blocking reservation in the range"""
        if check_out <= check_in:
            raise ServiceError("check_out must be later than check_in")

        booked = self.availability.booked_room_ids(check_in, check_out)

        query = self.db.query(Room).filter(
            Room.status == RoomStatus.AVAILABLE,
            Room.is_active == True
        )
        if booked:
            query = query.filter(~Room.id.in_(booked))
        if room_type is not None:
            query = query.filter(Room.room_type == room_type)
        if capacity is not None:
            query = query.filter(Room.capacity >= capacity)

        return query.order_by(Room.room_number).all()

    # ============== Statistics ==============

    def get_room_type_stats(self) -> List[dict]:
        """Count and price range per room type"""
        rows = self.db.query(
            Room.room_type,
            func.count(Room.id),
            func.avg(Room.price_per_night),
            func.min(Room.price_per_night),
            func.max(Room.price_per_night)
        ).group_by(Room.room_type).order_by(Room.room_type).all()

        return [
            {
                'room_type': room_type,
                'count': count,
                'average_price': to_money(avg_price or 0),
                'min_price': to_money(min_price or 0),
                'max_price': to_money(max_price or 0),
            }
            for room_type, count, avg_price, min_price, max_price in rows
        ]

    def get_room_status_stats(self) -> List[dict]:
        """Count per room status"""
        rows = self.db.query(
            Room.status, func.count(Room.id)
        ).group_by(Room.status).order_by(Room.status).all()
        return [{'status': status, 'count': count} for status, count in rows]
