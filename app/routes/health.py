import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from app.config import settings
from app.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/check")
def health_check(session: Session = Depends(get_session)):
    try:
        session.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        logger.exception("Database ping failed")
        database = "failed"

    return {
        "status": "ok" if database == "ok" else "degraded",
        "store": settings.STORE_NAME,
        "env": settings.ENV,
        "database": database,
        "timestamp": datetime.utcnow().isoformat(),
    }
