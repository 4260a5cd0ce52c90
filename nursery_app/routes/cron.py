"""
Scheduled maintenance routes
The hosting scheduler calls keep-alive every few days so an idle MongoDB
Atlas free-tier cluster is not paused.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from nursery_app.config.settings import settings
from nursery_app.database.db_operations import DBOperations, get_db_ops

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["Cron"])


@router.get("/keep-alive")
async def keep_alive(request: Request, db_ops: DBOperations = Depends(get_db_ops)):
    """Ping the database; requires ``Authorization: Bearer <CRON_SECRET>``"""
    secret = settings.CRON_SECRET
    if not secret:
        logger.error("❌ CRON_SECRET is not configured")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Server configuration error"},
        )

    if request.headers.get("authorization") != f"Bearer {secret}":
        logger.warning("⚠️ Unauthorized keep-alive attempt")
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"success": False, "message": "Unauthorized"},
        )

    try:
        result = await db_ops.ping()
        if result.get("ok") != 1:
            raise RuntimeError("Ping command did not return ok: 1")
    except Exception as exc:
        logger.error("❌ MongoDB keep-alive ping failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Failed to ping MongoDB cluster"},
        )

    timestamp = datetime.now(timezone.utc).isoformat()
    logger.info("✅ MongoDB keep-alive ping successful at %s", timestamp)
    return {
        "success": True,
        "message": "MongoDB cluster pinged successfully",
        "timestamp": timestamp,
    }
