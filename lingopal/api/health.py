"""
Health check endpoints
"""

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from lingopal.core.deps import SessionDep
from lingopal.core.logging import get_logger

router = APIRouter(tags=["health"])
logger = get_logger(__name__)


@router.get("/health")
async def health_check(db: SessionDep):
    """
    Check health of the API and its database
    """
    status = {
        "api": "ok",
        "db": "unknown",
    }

    try:
        await db.execute(text("SELECT 1"))
        status["db"] = "ok"
    except SQLAlchemyError as e:
        logger.warning("health.db_unavailable", error=str(e))
        status["db"] = "error"

    return status
