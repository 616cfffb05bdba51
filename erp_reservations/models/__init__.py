# Entities
from erp_reservations.models.entities import (
    Staff, Room, Reservation, Booking
)

__all__ = ['Staff', 'Room', 'Reservation', 'Booking']
