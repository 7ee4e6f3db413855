import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/api/health")
def health_check(db: Session = Depends(get_db)):
    """死活監視。DB疎通はレスポンスに含めるのみで、ステータスは常に200"""
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.warning(f"Health check database ping failed: {e}")
        database = "unavailable"
    return {"status": "success", "message": "Backend is healthy!", "database": database}
