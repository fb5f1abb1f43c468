"""
Health check endpoint for deployment monitoring.
"""
from datetime import datetime, timezone

from fastapi import APIRouter
from sqlalchemy import text

from app.core.config import STORAGE_BACKEND

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_check():
    """
    Returns 200 while the API is up; reports "degraded" when the database
    backend cannot be reached.
    """
    status = "healthy"
    db_status = "not used"

    if STORAGE_BACKEND == "database":
        from app.db.session import SessionLocal
        try:
            db = SessionLocal()
            try:
                db.execute(text("SELECT 1"))
            finally:
                db.close()
            db_status = "connected"
        except Exception as e:
            db_status = f"error: {str(e)}"
            status = "degraded"

    return {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "storage": STORAGE_BACKEND,
        "database": db_status,
        "version": "1.0.0",
    }
