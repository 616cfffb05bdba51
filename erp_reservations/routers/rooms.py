"""
Room routes
"""
from typing import List, Literal, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from erp_reservations.config import settings
from erp_reservations.database import get_db
from erp_reservations.models.entities import RoomType, RoomStatus, Amenity
from erp_reservations.models.schemas import (
    RoomCreate, RoomUpdate, RoomResponse, RoomStatusUpdate, RoomPage,
    RoomTypeStats, RoomStatusStats, MessageResponse, to_naive_utc
)
from erp_reservations.services.room_service import RoomService
from erp_reservations.services.pagination import total_pages
from erp_reservations.services.errors import ServiceError

router = APIRouter(prefix="/rooms", tags=["Rooms"])


def _parse_amenities(amenities: Optional[str]) -> Optional[List[Amenity]]:
    """Comma separated amenity names"""
    if not amenities:
        return None
    names = [name.strip() for name in amenities.split(",") if name.strip()]
    try:
        return [Amenity(name) for name in names]
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown amenity in '{amenities}'"
        )


@router.get("", response_model=RoomPage)
def list_rooms(
    room_type: Optional[RoomType] = None,
    room_status: Optional[RoomStatus] = Query(None, alias="status"),
    floor: Optional[int] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    amenities: Optional[str] = None,
    is_active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    sort_by: str = "room_number",
    sort_order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db)
):
    """List rooms with filters, sorting and pagination"""
    service = RoomService(db)
    rooms, total = service.get_rooms(
        room_type=room_type, status=room_status, floor=floor,
        min_price=min_price, max_price=max_price,
        amenities=_parse_amenities(amenities), is_active=is_active,
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order
    )
    return RoomPage(
        rooms=[RoomResponse.model_validate(r) for r in rooms],
        total_pages=total_pages(total, limit),
        current_page=page,
        total=total
    )


@router.get("/available", response_model=List[RoomResponse])
def get_available_rooms(
    check_in: datetime,
    check_out: datetime,
    room_type: Optional[RoomType] = None,
    capacity: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db)
):
    """Rooms free for the whole [check_in, check_out) range"""
    service = RoomService(db)
    try:
        rooms = service.get_available_rooms(
            to_naive_utc(check_in), to_naive_utc(check_out), room_type, capacity
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return [RoomResponse.model_validate(r) for r in rooms]


@router.get("/types", response_model=List[RoomTypeStats])
def get_room_type_stats(db: Session = Depends(get_db)):
    """Count and price range per room type"""
    service = RoomService(db)
    return [RoomTypeStats(**row) for row in service.get_room_type_stats()]


@router.get("/status", response_model=List[RoomStatusStats])
def get_room_status_stats(db: Session = Depends(get_db)):
    """Count per room status"""
    service = RoomService(db)
    return [RoomStatusStats(**row) for row in service.get_room_status_stats()]


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(room_id: int, db: Session = Depends(get_db)):
    service = RoomService(db)
    room = service.get_room(room_id)
    if not room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return RoomResponse.model_validate(room)


@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(data: RoomCreate, db: Session = Depends(get_db)):
    service = RoomService(db)
    try:
        room = service.create_room(data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return RoomResponse.model_validate(room)


@router.put("/{room_id}", response_model=RoomResponse)
def update_room(room_id: int, data: RoomUpdate, db: Session = Depends(get_db)):
    service = RoomService(db)
    try:
        room = service.update_room(room_id, data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return RoomResponse.model_validate(room)


@router.patch("/{room_id}/status", response_model=RoomResponse)
def update_room_status(room_id: int, data: RoomStatusUpdate, db: Session = Depends(get_db)):
    service = RoomService(db)
    try:
        room = service.update_room_status(room_id, data.status)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return RoomResponse.model_validate(room)


@router.delete("/{room_id}", response_model=MessageResponse)
def delete_room(room_id: int, db: Session = Depends(get_db)):
    service = RoomService(db)
    try:
        service.delete_room(room_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return MessageResponse(message="Room deleted successfully")
