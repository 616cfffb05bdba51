"""
Event handlers
Subscribers for the domain events published by the services
"""
import logging

from erp_reservations.services.event_bus import event_bus, Event
from erp_reservations.models.events import EventType

logger = logging.getLogger(__name__)


class EventHandlers:
    """
    Activity log subscribers

    Keeps an operational trail of room, reservation and booking changes
    separate from the services' own logging.
    """

    def __init__(self, activity_logger: logging.Logger = None):
        self._log = activity_logger or logging.getLogger("erp_reservations.activity")
        self._registered = False

    def handle_room_status_changed(self, event: Event) -> None:
        data = event.data
        self._log.info(
            f"Room {data.get('room_number')}: {data.get('old_status')} -> {data.get('new_status')}"
        )

    def handle_reservation_created(self, event: Event) -> None:
        data = event.data
        self._log.info(
            f"Reservation {data.get('reservation_number')} for {data.get('guest_name')} "
            f"(room {data.get('room_id')}, {data.get('check_in')} - {data.get('check_out')}, "
            f"{data.get('number_of_nights')} night(s), total {data.get('total_amount')})"
        )

    def handle_reservation_status_changed(self, event: Event) -> None:
        data = event.data
        changed_by = data.get('changed_by')
        suffix = f" by staff {changed_by}" if changed_by else ""
        self._log.info(
            f"Reservation {data.get('reservation_number')}: "
            f"{data.get('old_status')} -> {data.get('new_status')}{suffix}"
        )

    def handle_reservation_deleted(self, event: Event) -> None:
        data = event.data
        self._log.info(
            f"Reservation {data.get('reservation_number')} deleted "
            f"({data.get('deleted_bookings', 0)} booking(s) removed)"
        )

    def handle_booking_created(self, event: Event) -> None:
        data = event.data
        self._log.info(
            f"Booking {data.get('booking_number')} ({data.get('service_type')}) "
            f"on reservation {data.get('reservation_id')}, total {data.get('total_amount')}"
        )

    def handle_booking_status_changed(self, event: Event) -> None:
        data = event.data
        self._log.info(
            f"Booking {data.get('booking_number')}: {data.get('old_status')} -> {data.get('new_status')}"
        )

    def handle_booking_staff_assigned(self, event: Event) -> None:
        data = event.data
        self._log.info(f"Booking {data.get('booking_number')} assigned to staff {data.get('staff_id')}")

    def _subscriptions(self):
        return [
            (EventType.ROOM_STATUS_CHANGED, self.handle_room_status_changed),
            (EventType.RESERVATION_CREATED, self.handle_reservation_created),
            (EventType.RESERVATION_STATUS_CHANGED, self.handle_reservation_status_changed),
            (EventType.RESERVATION_DELETED, self.handle_reservation_deleted),
            (EventType.BOOKING_CREATED, self.handle_booking_created),
            (EventType.BOOKING_STATUS_CHANGED, self.handle_booking_status_changed),
            (EventType.BOOKING_STAFF_ASSIGNED, self.handle_booking_staff_assigned),
        ]

    def register_handlers(self, event_bus_instance=None) -> None:
        if self._registered:
            logger.warning("Event handlers already registered")
            return

        bus = event_bus_instance or event_bus
        for event_type, handler in self._subscriptions():
            bus.subscribe(event_type, handler)

        self._registered = True
        logger.info("Event handlers registered successfully")

    def unregister_handlers(self, event_bus_instance=None) -> None:
        bus = event_bus_instance or event_bus
        for event_type, handler in self._subscriptions():
            bus.unsubscribe(event_type, handler)

        self._registered = False
        logger.info("Event handlers unregistered")


event_handlers = EventHandlers()


def register_event_handlers():
    event_handlers.register_handlers()
