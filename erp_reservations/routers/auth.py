"""
Authentication routes
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from erp_reservations.database import get_db
from erp_reservations.models.entities import Staff
from erp_reservations.models.schemas import LoginRequest, LoginResponse, StaffResponse
from erp_reservations.services.staff_service import StaffService
from erp_reservations.services.errors import ServiceError
from erp_reservations.security.auth import get_current_staff

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=LoginResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    service = StaffService(db)
    try:
        result = service.authenticate(data.username, data.password)
    except ServiceError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    if not result:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password"
        )
    return LoginResponse(
        access_token=result['access_token'],
        token_type=result['token_type'],
        staff=StaffResponse.model_validate(result['staff'])
    )


@router.get("/me", response_model=StaffResponse)
def get_current_staff_info(current_staff: Staff = Depends(get_current_staff)):
    return StaffResponse.model_validate(current_staff)
