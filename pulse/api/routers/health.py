# pulse/api/routers/health.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pulse import __version__
from pulse.data.database import get_db
from pulse.utils.logging import get_logger
from pulse.utils.settings import ENVIRONMENT

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db)):
    """Liveness plus a database round trip; 503 when the database is down."""
    try:
        db.execute(text("SELECT 1"))
        database = "up"
    except SQLAlchemyError as e:
        logger.error(f"Health check database failure: {e}")
        database = "down"

    body = {
        "status": "OK" if database == "up" else "DEGRADED",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "Pulse API",
        "version": __version__,
        "environment": ENVIRONMENT,
        "database": database,
    }
    return JSONResponse(status_code=200 if database == "up" else 503, content=body)
