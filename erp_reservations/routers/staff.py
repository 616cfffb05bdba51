"""
Staff management routes
Reading requires a login; changes require a manager.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from erp_reservations.database import get_db
from erp_reservations.models.entities import Staff, StaffRole
from erp_reservations.models.schemas import StaffCreate, StaffUpdate, StaffResponse
from erp_reservations.services.staff_service import StaffService
from erp_reservations.services.errors import ServiceError
from erp_reservations.security.auth import get_current_staff, require_manager

router = APIRouter(prefix="/staff", tags=["Staff"])


@router.get("", response_model=List[StaffResponse])
def list_staff(
    role: Optional[StaffRole] = None,
    is_active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff)
):
    service = StaffService(db)
    return [StaffResponse.model_validate(s) for s in service.get_staff_list(role, is_active)]


@router.get("/{staff_id}", response_model=StaffResponse)
def get_staff(
    staff_id: int,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff)
):
    service = StaffService(db)
    staff = service.get_staff(staff_id)
    if not staff:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Staff member not found")
    return StaffResponse.model_validate(staff)


@router.post("", response_model=StaffResponse, status_code=status.HTTP_201_CREATED)
def create_staff(
    data: StaffCreate,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(require_manager)
):
    service = StaffService(db)
    try:
        staff = service.create_staff(data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return StaffResponse.model_validate(staff)


@router.put("/{staff_id}", response_model=StaffResponse)
def update_staff(
    staff_id: int,
    data: StaffUpdate,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(require_manager)
):
    service = StaffService(db)
    try:
        staff = service.update_staff(staff_id, data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return StaffResponse.model_validate(staff)


@router.delete("/{staff_id}", response_model=StaffResponse)
def deactivate_staff(
    staff_id: int,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(require_manager)
):
    """Staff are deactivated rather than deleted"""
    service = StaffService(db)
    try:
        staff = service.deactivate_staff(staff_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return StaffResponse.model_validate(staff)
