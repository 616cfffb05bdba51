# Business Services
from erp_reservations.services.room_service import RoomService
from erp_reservations.services.reservation_service import ReservationService
from erp_reservations.services.booking_service import BookingService
from erp_reservations.services.staff_service import StaffService
from erp_reservations.services.availability_service import AvailabilityService

__all__ = [
    'RoomService', 'ReservationService', 'BookingService', 'StaffService',
    'AvailabilityService',
]
