"""
Availability queries against stored reservations
"""
from decimal import Decimal

from erp_reservations.models.entities import Reservation, ReservationStatus
from erp_reservations.services.availability_service import AvailabilityService
from factories import day


def _add_reservation(db_session, room, number, start, end, status=ReservationStatus.CONFIRMED):
    reservation = Reservation(
        reservation_number=number,
        guest_first_name="Guest",
        guest_last_name=number,
        guest_email=f"{number.lower()}@example.com",
        guest_phone="555",
        room_id=room.id,
        check_in=day(start),
        check_out=day(end),
        number_of_guests=1,
        number_of_nights=end - start,
        total_amount=Decimal("0.00"),
        status=status
    )
    db_session.add(reservation)
    db_session.commit()
    return reservation


class TestConflicts:

    def test_overlapping_confirmed_reservation_conflicts(self, db_session, confirmed_reservation, sample_room):
        service = AvailabilityService(db_session)
        conflict = service.find_conflicting_reservation(sample_room.id, day(2), day(4))
        assert conflict.id == confirmed_reservation.id

    def test_touching_boundary_is_free(self, db_session, confirmed_reservation, sample_room):
        service = AvailabilityService(db_session)
        assert service.find_conflicting_reservation(sample_room.id, day(3), day(5)) is None
        assert service.find_conflicting_reservation(sample_room.id, day(0), day(1)) is None

    def test_non_blocking_statuses_are_ignored(self, db_session, sample_room):
        for i, status in enumerate([ReservationStatus.PENDING, ReservationStatus.CANCELLED,
                                    ReservationStatus.CHECKED_OUT, ReservationStatus.NO_SHOW]):
            _add_reservation(db_session, sample_room, f"RES00010{i}", 1, 3, status)

        service = AvailabilityService(db_session)
        assert service.find_conflicting_reservation(sample_room.id, day(1), day(3)) is None

    def test_checked_in_blocks(self, db_session, sample_room):
        _add_reservation(db_session, sample_room, "RES000100", 1, 3, ReservationStatus.CHECKED_IN)
        assert AvailabilityService(db_session).find_conflicting_reservation(sample_room.id, day(2), day(3)) is not None

    def test_exclude_self(self, db_session, confirmed_reservation, sample_room):
        service = AvailabilityService(db_session)
        assert service.find_conflicting_reservation(
            sample_room.id, day(1), day(4), exclude_id=confirmed_reservation.id
        ) is None

    def test_other_rooms_do_not_conflict(self, db_session, confirmed_reservation, sample_room_201):
        assert AvailabilityService(db_session).find_conflicting_reservation(sample_room_201.id, day(1), day(3)) is None


class TestCheckAvailability:

    def test_reports_conflicting_number(self, db_session, confirmed_reservation, sample_room):
        result = AvailabilityService(db_session).check_availability(sample_room.id, day(2), day(4))
        assert result == {'available': False, 'conflicting_reservation': 'RES000001'}

    def test_available(self, db_session, confirmed_reservation, sample_room):
        result = AvailabilityService(db_session).check_availability(sample_room.id, day(5), day(6))
        assert result == {'available': True, 'conflicting_reservation': None}

    def test_booked_room_ids(self, db_session, confirmed_reservation, sample_room, sample_room_201):
        service = AvailabilityService(db_session)
        assert service.booked_room_ids(day(2), day(3)) == [sample_room.id]
        assert service.booked_room_ids(day(3), day(4)) == []
