"""
Staff service tests
"""
import pytest
from pydantic import ValidationError

from erp_reservations.models.entities import Staff, StaffRole
from erp_reservations.models.schemas import StaffCreate, StaffUpdate
from erp_reservations.services.staff_service import StaffService, staff_summary
from erp_reservations.services.errors import ConflictError, ServiceError, NotFoundError
from erp_reservations.security.auth import decode_token


class TestStaffAccounts:

    def test_create_hashes_password(self, db_session):
        staff = StaffService(db_session).create_staff(StaffCreate(
            username="chef", password="kitchen1", first_name="Luis", last_name="Mota", role="service"
        ))

        assert staff.role == StaffRole.SERVICE
        assert staff.password_hash != "kitchen1"

    def test_duplicate_username(self, db_session, receptionist):
        with pytest.raises(ConflictError):
            StaffService(db_session).create_staff(StaffCreate(
                username="front1", password="another1", first_name="A", last_name="B"
            ))

    def test_last_manager_cannot_be_deactivated(self, db_session, manager):
        with pytest.raises(ServiceError, match="active manager"):
            StaffService(db_session).deactivate_staff(manager.id)

    def test_last_manager_cannot_be_demoted(self, db_session, manager):
        with pytest.raises(ServiceError):
            StaffService(db_session).update_staff(manager.id, StaffUpdate(role=StaffRole.RECEPTIONIST))

    def test_deactivate(self, db_session, manager, receptionist):
        staff = StaffService(db_session).deactivate_staff(receptionist.id)
        assert staff.is_active is False

    def test_update_rejects_explicit_nulls(self):
        for field in ("first_name", "last_name", "role", "is_active"):
            with pytest.raises(ValidationError):
                StaffUpdate(**{field: None})

    def test_update_allows_clearing_contact_fields(self, db_session, receptionist):
        staff = StaffService(db_session).update_staff(receptionist.id, StaffUpdate(email=None, phone=None))
        assert staff.email is None
        assert staff.first_name == "Tom"

    def test_missing_staff(self, db_session):
        with pytest.raises(NotFoundError):
            StaffService(db_session).update_staff(999, StaffUpdate(phone="1"))

    def test_summary(self, receptionist):
        assert staff_summary(receptionist)["last_name"] == "Baker"
        assert staff_summary(None) is None


class TestAuthentication:

    def test_valid_credentials(self, db_session, receptionist):
        result = StaffService(db_session).authenticate("front1", "secret123")

        assert result['staff'].id == receptionist.id
        payload = decode_token(result['access_token'])
        assert payload["sub"] == str(receptionist.id)
        assert payload["role"] == "receptionist"

    def test_wrong_password(self, db_session, receptionist):
        assert StaffService(db_session).authenticate("front1", "wrong") is None

    def test_deactivated_account(self, db_session, receptionist):
        receptionist.is_active = False
        db_session.commit()

        with pytest.raises(ServiceError, match="deactivated"):
            StaffService(db_session).authenticate("front1", "secret123")


class TestBootstrapAdmin:

    def test_seeds_manager_on_empty_table(self, db_session):
        staff = StaffService(db_session).ensure_bootstrap_admin("admin", "changeme")

        assert staff.role == StaffRole.MANAGER
        assert StaffService(db_session).authenticate("admin", "changeme") is not None

    def test_skipped_without_password(self, db_session):
        assert StaffService(db_session).ensure_bootstrap_admin("admin", None) is None
        assert db_session.query(Staff).count() == 0

    def test_skipped_when_staff_exist(self, db_session, receptionist):
        assert StaffService(db_session).ensure_bootstrap_admin("admin", "changeme") is None
