"""
Reservation routes

Writes accept an optional bearer token; the authenticated staff member is
recorded as creator / last modifier.
"""
from typing import Literal, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from erp_reservations.config import settings
from erp_reservations.database import get_db
from erp_reservations.models.entities import Staff, RoomType, ReservationStatus
from erp_reservations.models.schemas import (
    ReservationCreate, ReservationUpdate, ReservationStatusUpdate, ReservationResponse,
    ReservationPage, AvailabilityResponse, MessageResponse, to_naive_utc
)
from erp_reservations.services.reservation_service import ReservationService
from erp_reservations.services.pagination import total_pages
from erp_reservations.services.errors import ServiceError
from erp_reservations.security.auth import get_optional_staff

router = APIRouter(prefix="/reservations", tags=["Reservations"])


def _staff_id(staff: Optional[Staff]) -> Optional[int]:
    return staff.id if staff else None


@router.get("", response_model=ReservationPage)
def list_reservations(
    reservation_status: Optional[ReservationStatus] = Query(None, alias="status"),
    room_type: Optional[RoomType] = None,
    guest_email: Optional[str] = None,
    check_in: Optional[datetime] = None,
    check_out: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    sort_by: str = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db)
):
    """List reservations with filters, sorting and pagination"""
    service = ReservationService(db)
    reservations, total = service.get_reservations(
        status=reservation_status, room_type=room_type, guest_email=guest_email,
        check_in=to_naive_utc(check_in) if check_in else None,
        check_out=to_naive_utc(check_out) if check_out else None,
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order
    )
    return ReservationPage(
        reservations=[ReservationResponse(**service.get_reservation_detail(r)) for r in reservations],
        total_pages=total_pages(total, limit),
        current_page=page,
        total=total
    )


@router.get("/availability/check", response_model=AvailabilityResponse)
def check_availability(
    room_id: int,
    check_in: datetime,
    check_out: datetime,
    db: Session = Depends(get_db)
):
    """Whether the room is free for [check_in, check_out)"""
    service = ReservationService(db)
    try:
        result = service.check_availability(room_id, to_naive_utc(check_in), to_naive_utc(check_out))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return AvailabilityResponse(**result)


@router.get("/{reservation_id}", response_model=ReservationResponse)
def get_reservation(reservation_id: int, db: Session = Depends(get_db)):
    service = ReservationService(db)
    reservation = service.get_reservation(reservation_id)
    if not reservation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found")
    return ReservationResponse(**service.get_reservation_detail(reservation))


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def create_reservation(
    data: ReservationCreate,
    db: Session = Depends(get_db),
    current_staff: Optional[Staff] = Depends(get_optional_staff)
):
    service = ReservationService(db)
    try:
        reservation = service.create_reservation(data, created_by=_staff_id(current_staff))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return ReservationResponse(**service.get_reservation_detail(reservation))


@router.put("/{reservation_id}", response_model=ReservationResponse)
def update_reservation(
    reservation_id: int,
    data: ReservationUpdate,
    db: Session = Depends(get_db),
    current_staff: Optional[Staff] = Depends(get_optional_staff)
):
    service = ReservationService(db)
    try:
        reservation = service.update_reservation(
            reservation_id, data, modified_by=_staff_id(current_staff)
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return ReservationResponse(**service.get_reservation_detail(reservation))


@router.patch("/{reservation_id}/status", response_model=ReservationResponse)
def update_reservation_status(
    reservation_id: int,
    data: ReservationStatusUpdate,
    db: Session = Depends(get_db),
    current_staff: Optional[Staff] = Depends(get_optional_staff)
):
    service = ReservationService(db)
    try:
        reservation = service.update_status(
            reservation_id, data.status, modified_by=_staff_id(current_staff)
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return ReservationResponse(**service.get_reservation_detail(reservation))


@router.delete("/{reservation_id}", response_model=MessageResponse)
def delete_reservation(reservation_id: int, db: Session = Depends(get_db)):
    """Delete a reservation and its bookings"""
    service = ReservationService(db)
    try:
        service.delete_reservation(reservation_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return MessageResponse(message="Reservation deleted successfully")
