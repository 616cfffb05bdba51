"""
Pydantic schemas
API request / response validation
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Optional, List
from pydantic import (
    BaseModel, EmailStr, Field, field_validator, ValidationInfo, ConfigDict, PlainSerializer
)
from erp_reservations.models.entities import (
    RoomType, RoomStatus, Amenity, ReservationStatus, PaymentStatus, PaymentMethod,
    IdType, ServiceType, BookingStatus, StaffRole
)

# Money is stored as Decimal and sent over the wire as a JSON number
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def to_naive_utc(value: datetime) -> datetime:
    """Stored datetimes are naive UTC"""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


# ============== Staff Schemas ==============

class StaffSummary(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class StaffCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    email: Optional[str] = Field(None, max_length=254)
    phone: Optional[str] = Field(None, max_length=30)
    role: StaffRole = StaffRole.RECEPTIONIST


class StaffUpdate(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=254)
    phone: Optional[str] = Field(None, max_length=30)
    role: Optional[StaffRole] = None
    is_active: Optional[bool] = None

    @field_validator("first_name", "last_name", "role", "is_active")
    @classmethod
    def not_null(cls, v):
        # omitted means unchanged; these columns cannot be cleared
        if v is None:
            raise ValueError("must not be null")
        return v


class StaffResponse(BaseModel):
    id: int
    username: str
    first_name: str
    last_name: str
    email: Optional[str]
    phone: Optional[str]
    role: StaffRole
    is_active: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    staff: StaffResponse


# ============== Room Schemas ==============

class RoomBase(BaseModel):
    room_number: str = Field(..., max_length=20)
    room_type: RoomType
    capacity: int = Field(..., ge=1, le=10)
    price_per_night: Money = Field(..., ge=0, max_digits=10, decimal_places=2)
    amenities: List[Amenity] = Field(default_factory=list)
    status: RoomStatus = RoomStatus.AVAILABLE
    floor: int = Field(..., ge=1)
    description: Optional[str] = Field(None, max_length=500)
    images: List[str] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("room_number")
    @classmethod
    def strip_room_number(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("amenities")
    @classmethod
    def dedupe_amenities(cls, v: List[Amenity]) -> List[Amenity]:
        """Amenities are a set; keep first-seen order"""
        return list(dict.fromkeys(v))


class RoomCreate(RoomBase):
    pass


class RoomUpdate(RoomBase):
    pass


class RoomStatusUpdate(BaseModel):
    status: RoomStatus


class RoomResponse(RoomBase):
    id: int
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class RoomSummary(BaseModel):
    id: int
    room_number: str
    room_type: RoomType
    price_per_night: Money
    model_config = ConfigDict(from_attributes=True)


class RoomPage(BaseModel):
    rooms: List[RoomResponse]
    total_pages: int
    current_page: int
    total: int


class RoomTypeStats(BaseModel):
    room_type: RoomType
    count: int
    average_price: Money
    min_price: Money
    max_price: Money


class RoomStatusStats(BaseModel):
    status: RoomStatus
    count: int


# ============== Reservation Schemas ==============

class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class GuestInfo(BaseModel):
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    email: EmailStr
    phone: str = Field(..., max_length=30)
    address: Optional[Address] = None
    id_type: Optional[IdType] = None
    id_number: Optional[str] = Field(None, max_length=50)

    @field_validator("first_name", "last_name", "phone")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class GuestResponse(GuestInfo):
    full_name: str


class ReservationBase(BaseModel):
    guest: GuestInfo
    room_id: int
    check_in: datetime
    check_out: datetime
    number_of_guests: int = Field(..., ge=1, le=10)
    status: ReservationStatus = ReservationStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[PaymentMethod] = None
    special_requests: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("check_in")
    @classmethod
    def normalize_check_in(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @field_validator("check_out")
    @classmethod
    def check_out_after_check_in(cls, v: datetime, info: ValidationInfo) -> datetime:
        v = to_naive_utc(v)
        check_in = info.data.get("check_in")
        if check_in is not None and v <= check_in:
            raise ValueError("check_out must be later than check_in")
        return v


class ReservationCreate(ReservationBase):
    pass


class ReservationUpdate(ReservationBase):
    pass


class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus


class ReservationResponse(BaseModel):
    id: int
    reservation_number: str
    guest: GuestResponse
    room_id: int
    room: Optional[RoomSummary] = None
    check_in: datetime
    check_out: datetime
    number_of_guests: int
    number_of_nights: int
    total_amount: Money
    status: ReservationStatus
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    special_requests: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[StaffSummary] = None
    last_modified_by: Optional[StaffSummary] = None
    created_at: datetime
    updated_at: datetime


class ReservationSummary(BaseModel):
    id: int
    reservation_number: str
    guest_name: str
    guest_email: str
    check_in: datetime
    check_out: datetime
    status: ReservationStatus


class ReservationPage(BaseModel):
    reservations: List[ReservationResponse]
    total_pages: int
    current_page: int
    total: int


class AvailabilityResponse(BaseModel):
    available: bool
    conflicting_reservation: Optional[str] = None


# ============== Booking Schemas ==============

class BookingBase(BaseModel):
    service_type: ServiceType
    service_name: str = Field(..., max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    scheduled_date: datetime
    scheduled_time: str = Field(..., pattern=TIME_PATTERN)
    duration: int = Field(..., ge=15)
    price: Money = Field(..., ge=0, max_digits=10, decimal_places=2)
    quantity: int = Field(default=1, ge=1, le=1000)
    status: BookingStatus = BookingStatus.SCHEDULED
    payment_status: PaymentStatus = PaymentStatus.PENDING
    assigned_staff_id: Optional[int] = None
    special_instructions: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("service_name")
    @classmethod
    def strip_service_name(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("scheduled_date")
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class BookingCreate(BookingBase):
    reservation_id: int


class BookingUpdate(BookingBase):
    """Full update; the owning reservation cannot be changed"""
    pass


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingAssign(BaseModel):
    assigned_staff_id: int


class BookingResponse(BaseModel):
    id: int
    booking_number: str
    reservation_id: int
    reservation: Optional[ReservationSummary] = None
    service_type: ServiceType
    service_name: str
    description: Optional[str] = None
    scheduled_date: datetime
    scheduled_time: str
    duration: int
    price: Money
    quantity: int
    total_amount: Money
    status: BookingStatus
    payment_status: PaymentStatus
    assigned_staff_id: Optional[int] = None
    assigned_staff: Optional[StaffSummary] = None
    special_instructions: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[StaffSummary] = None
    created_at: datetime
    updated_at: datetime


class BookingPage(BaseModel):
    bookings: List[BookingResponse]
    total_pages: int
    current_page: int
    total: int


# ============== Common ==============

class MessageResponse(BaseModel):
    message: str
