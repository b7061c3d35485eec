"""GET /api/health — database reachability check."""
import logging
from fastapi import APIRouter, Request

from api.dependencies import ensure_pool_handle
from core.errors import QueryGateError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(request: Request):
    db_status = await _check_database(request)
    overall = "ok" if db_status["status"] == "up" else "degraded"
    return {
        "status": overall,
        "services": {
            "database": db_status,
        },
    }


async def _check_database(request: Request) -> dict:
    try:
        handle = await ensure_pool_handle(request.app)
        await handle.ping()
        return {"status": "up", **handle.describe()}
    except QueryGateError as e:
        logger.warning("Database health check failed: %s", e)
        return {"status": "down", "error": str(e)}
