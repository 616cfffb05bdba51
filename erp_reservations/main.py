"""
ERP Reservations application entry point
Hotel rooms, guest reservations and ancillary service bookings
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from erp_reservations import __version__
from erp_reservations.config import settings
from erp_reservations.database import init_db, SessionLocal
from erp_reservations.logging_config import setup_logging
from erp_reservations.routers import auth, rooms, reservations, bookings, staff

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    init_db()

    from erp_reservations.services.event_handlers import register_event_handlers
    register_event_handlers()

    from erp_reservations.services.staff_service import StaffService
    db = SessionLocal()
    try:
        StaffService(db).ensure_bootstrap_admin(
            settings.BOOTSTRAP_ADMIN_USERNAME, settings.BOOTSTRAP_ADMIN_PASSWORD
        )
    finally:
        db.close()

    logger.info(f"{settings.APP_NAME} {__version__} started")
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="Hotel room inventory, reservations and service bookings",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============== Error responses ==============

def _field_path(loc) -> str:
    # drop the "body" / "query" / "path" prefix
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": _field_path(error.get("loc", ())),
            "message": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation failed", "errors": errors}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error", "error": str(exc)}
    )


# ============== Routes ==============

app.include_router(auth.router, prefix="/api")
app.include_router(staff.router, prefix="/api")
app.include_router(rooms.router, prefix="/api")
app.include_router(reservations.router, prefix="/api")
app.include_router(bookings.router, prefix="/api")


@app.get("/")
def root():
    return {
        "name": settings.APP_NAME,
        "version": __version__,
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    return {"status": "healthy"}
