"""
Staff service
Staff accounts and authentication
"""
from typing import List, Optional
import logging
from sqlalchemy.orm import Session
from erp_reservations.models.entities import Staff, StaffRole
from erp_reservations.models.schemas import StaffCreate, StaffUpdate
from erp_reservations.security.auth import get_password_hash, verify_password, create_access_token
from erp_reservations.services.errors import ServiceError, NotFoundError, ConflictError

logger = logging.getLogger(__name__)


def staff_summary(staff: Optional[Staff]) -> Optional[dict]:
    """Embedded staff reference used in reservation and booking responses"""
    if staff is None:
        return None
    return {
        'id': staff.id,
        'first_name': staff.first_name,
        'last_name': staff.last_name,
        'email': staff.email,
        'phone': staff.phone,
    }


class StaffService:
    """Staff service"""

    def __init__(self, db: Session):
        self.db = db

    def get_staff_list(self, role: Optional[StaffRole] = None,
                       is_active: Optional[bool] = None) -> List[Staff]:
        query = self.db.query(Staff)

        if role:
            query = query.filter(Staff.role == role)
        if is_active is not None:
            query = query.filter(Staff.is_active == is_active)

        return query.order_by(Staff.last_name, Staff.first_name, Staff.id).all()

    def get_staff(self, staff_id: int) -> Optional[Staff]:
        return self.db.query(Staff).filter(Staff.id == staff_id).first()

    def get_staff_or_404(self, staff_id: int) -> Staff:
        staff = self.get_staff(staff_id)
        if not staff:
            raise NotFoundError("Staff member not found")
        return staff

    def get_staff_by_username(self, username: str) -> Optional[Staff]:
        return self.db.query(Staff).filter(Staff.username == username).first()

    def create_staff(self, data: StaffCreate) -> Staff:
        if self.get_staff_by_username(data.username):
            raise ConflictError(f"Username '{data.username}' already exists")

        staff = Staff(
            username=data.username,
            password_hash=get_password_hash(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            phone=data.phone,
            role=data.role
        )
        self.db.add(staff)
        self.db.commit()
        self.db.refresh(staff)
        logger.info(f"Staff member {staff.username} created with role {staff.role.value}")
        return staff

    def update_staff(self, staff_id: int, data: StaffUpdate) -> Staff:
        staff = self.get_staff_or_404(staff_id)
        update_data = data.model_dump(exclude_unset=True)

        demoted = 'role' in update_data and update_data['role'] != StaffRole.MANAGER
        deactivated = update_data.get('is_active') is False
        if (demoted or deactivated) and staff.role == StaffRole.MANAGER:
            self._ensure_other_manager(staff)

        for key, value in update_data.items():
            setattr(staff, key, value)

        self.db.commit()
        self.db.refresh(staff)
        return staff

    def deactivate_staff(self, staff_id: int) -> Staff:
        """Staff are referenced by reservations and bookings, so they are never deleted"""
        staff = self.get_staff_or_404(staff_id)
        if staff.role == StaffRole.MANAGER:
            self._ensure_other_manager(staff)

        staff.is_active = False
        self.db.commit()
        self.db.refresh(staff)
        logger.info(f"Staff member {staff.username} deactivated")
        return staff

    def _ensure_other_manager(self, staff: Staff) -> None:
        remaining = self.db.query(Staff).filter(
            Staff.role == StaffRole.MANAGER,
            Staff.is_active == True,
            Staff.id != staff.id
        ).count()
        if remaining == 0:
            raise ServiceError("At least one active manager account is required")

    def authenticate(self, username: str, password: str) -> Optional[dict]:
        """Returns the token and the staff member, or None for bad credentials"""
        staff = self.get_staff_by_username(username)
        if not staff or not verify_password(password, staff.password_hash):
            logger.warning(f"Failed login for '{username}'")
            return None
        if not staff.is_active:
            raise ServiceError("Account is deactivated")

        return {
            'access_token': create_access_token(staff.id, staff.role),
            'token_type': 'bearer',
            'staff': staff
        }

    def ensure_bootstrap_admin(self, username: str, password: Optional[str]) -> Optional[Staff]:
        """Seed a manager account when the staff table is empty"""
        if not password or self.db.query(Staff).count() > 0:
            return None

        staff = Staff(
            username=username,
            password_hash=get_password_hash(password),
            first_name="System",
            last_name="Administrator",
            role=StaffRole.MANAGER
        )
        self.db.add(staff)
        self.db.commit()
        self.db.refresh(staff)
        logger.info(f"Bootstrap manager account '{username}' created")
        return staff
