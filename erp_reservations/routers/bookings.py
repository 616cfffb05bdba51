"""
Booking routes
"""
from typing import List, Literal, Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from erp_reservations.config import settings
from erp_reservations.database import get_db
from erp_reservations.models.entities import Staff, BookingStatus, ServiceType
from erp_reservations.models.schemas import (
    BookingCreate, BookingUpdate, BookingStatusUpdate, BookingAssign, BookingResponse,
    BookingPage, MessageResponse
)
from erp_reservations.services.booking_service import BookingService
from erp_reservations.services.pagination import total_pages
from erp_reservations.services.errors import ServiceError
from erp_reservations.security.auth import get_optional_staff

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.get("", response_model=BookingPage)
def list_bookings(
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    service_type: Optional[ServiceType] = None,
    scheduled_date: Optional[date] = None,
    reservation_id: Optional[int] = None,
    assigned_staff_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    sort_by: str = "scheduled_date",
    sort_order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db)
):
    """List bookings with filters, sorting and pagination"""
    service = BookingService(db)
    bookings, total = service.get_bookings(
        status=booking_status, service_type=service_type, scheduled_date=scheduled_date,
        reservation_id=reservation_id, assigned_staff_id=assigned_staff_id,
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order
    )
    return BookingPage(
        bookings=[BookingResponse(**service.get_booking_detail(b)) for b in bookings],
        total_pages=total_pages(total, limit),
        current_page=page,
        total=total
    )


@router.get("/reservation/{reservation_id}", response_model=List[BookingResponse])
def get_reservation_bookings(reservation_id: int, db: Session = Depends(get_db)):
    """All bookings of a reservation, by scheduled date"""
    service = BookingService(db)
    return [BookingResponse(**service.get_booking_detail(b))
            for b in service.get_bookings_by_reservation(reservation_id)]


@router.get("/staff/{staff_id}", response_model=List[BookingResponse])
def get_staff_bookings(
    staff_id: int,
    day: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db)
):
    """Bookings assigned to a staff member, optionally for one day"""
    service = BookingService(db)
    return [BookingResponse(**service.get_booking_detail(b))
            for b in service.get_bookings_by_staff(staff_id, day)]


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(booking_id: int, db: Session = Depends(get_db)):
    service = BookingService(db)
    booking = service.get_booking(booking_id)
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return BookingResponse(**service.get_booking_detail(booking))


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    current_staff: Optional[Staff] = Depends(get_optional_staff)
):
    service = BookingService(db)
    try:
        booking = service.create_booking(data, created_by=current_staff.id if current_staff else None)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return BookingResponse(**service.get_booking_detail(booking))


@router.put("/{booking_id}", response_model=BookingResponse)
def update_booking(booking_id: int, data: BookingUpdate, db: Session = Depends(get_db)):
    service = BookingService(db)
    try:
        booking = service.update_booking(booking_id, data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return BookingResponse(**service.get_booking_detail(booking))


@router.patch("/{booking_id}/status", response_model=BookingResponse)
def update_booking_status(booking_id: int, data: BookingStatusUpdate, db: Session = Depends(get_db)):
    service = BookingService(db)
    try:
        booking = service.update_status(booking_id, data.status)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return BookingResponse(**service.get_booking_detail(booking))


@router.patch("/{booking_id}/assign", response_model=BookingResponse)
def assign_booking_staff(booking_id: int, data: BookingAssign, db: Session = Depends(get_db)):
    service = BookingService(db)
    try:
        booking = service.assign_staff(booking_id, data.assigned_staff_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return BookingResponse(**service.get_booking_detail(booking))


@router.delete("/{booking_id}", response_model=MessageResponse)
def delete_booking(booking_id: int, db: Session = Depends(get_db)):
    service = BookingService(db)
    try:
        service.delete_booking(booking_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return MessageResponse(message="Booking deleted successfully")
