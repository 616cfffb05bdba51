"""
Run the API server: python -m erp_reservations
"""
import uvicorn
from erp_reservations.config import settings


def main():
    uvicorn.run(
        "erp_reservations.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
