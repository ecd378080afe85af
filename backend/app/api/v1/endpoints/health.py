"""
Health Check Endpoints

- /health       - Simple status for load balancers
- /health/live  - Liveness (process is running)
- /health/ready - Readiness (database reachable and tables created)
"""

from fastapi import APIRouter, HTTPException, status
from datetime import datetime
from typing import Dict, Any
import time

from app.core.config import settings
from app.core.logging_config import logger


router = APIRouter(prefix="/health", tags=["Health Checks"])

VERSION = "1.0.0"


async def check_database() -> Dict[str, Any]:
    """Check database connectivity and that the catalog table is accessible"""
    start = time.time()
    try:
        from app.core.database import get_session_local
        from sqlalchemy import text

        session_factory = get_session_local()
        async with session_factory() as session:
            await session.execute(text("SELECT 1 as health"))

            try:
                await session.execute(text("SELECT COUNT(*) FROM tech_messages"))
                tables_ok = True
            except Exception:
                tables_ok = False

            latency = (time.time() - start) * 1000
            return {
                "status": "healthy",
                "latency_ms": round(latency, 2),
                "connection": "ok",
                "tables_ready": tables_ok,
                "message": "Database connection successful"
            }
    except Exception as e:
        latency = (time.time() - start) * 1000
        logger.error(f"[HealthCheck] Database check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round(latency, 2),
            "connection": "failed",
            "tables_ready": False,
            "error": str(e),
            "message": "Database connection failed - search will not work"
        }


@router.get("")
async def health_check():
    """Simple health check endpoint for load balancer"""
    return {"status": "healthy", "service": "opsfinder-backend"}


@router.get("/live")
async def liveness_check():
    """
    Liveness probe - indicates the application is running.

    Returns 200 if the process is alive.
    """
    return {
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat(),
        "app": settings.APP_NAME,
        "version": VERSION
    }


@router.get("/ready")
async def readiness_check():
    """
    Readiness probe - indicates the application can handle requests.

    Returns 200 only if the database is reachable and the schema exists.
    """
    db_check = await check_database()
    is_ready = db_check.get("status") == "healthy" and db_check.get("tables_ready", False)

    response = {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": {
            "database": db_check,
        }
    }

    if not is_ready:
        logger.warning(f"[HealthCheck] Readiness check failed: {response}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=response
        )

    return response
