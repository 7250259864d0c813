# ledger_service/app/api/endpoints/health_endpoints.py
"""
Health check endpoint for load balancers and uptime monitoring.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.session import get_db

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)

@router.get("/health",
    summary="Basic health check",
    responses={
        200: {"description": "Service is healthy"},
        503: {"description": "Database is unreachable"},
    }
)
def health_check(db: Session = Depends(get_db)):
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "unreachable", "timestamp": timestamp},
        )
    return {"status": "healthy", "database": "ok", "timestamp": timestamp}
