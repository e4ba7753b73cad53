import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from payview.config import settings
from payview.database import get_session
from payview.utils.clock import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/check")
def health_check(session: Session = Depends(get_session)):
    """Liveness plus a database round trip; 503 when the database is unreachable."""
    database = "ok"
    try:
        session.exec(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check database ping failed")
        database = "failed"

    body = {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "environment": settings.env,
        "stripe_mode": "live" if settings.stripe_secret_key.startswith("sk_live") else "test",
        "timestamp": utcnow().isoformat(),
    }
    return JSONResponse(status_code=200 if database == "ok" else 503, content=body)
