import time

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from fedmarket.config import settings
from fedmarket.db.engine import engine

logger = structlog.get_logger()

router = APIRouter()


async def _check_db() -> dict:
    start = time.perf_counter()
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "ok", "latency_ms": round((time.perf_counter() - start) * 1000, 1)}
    except Exception as exc:
        logger.warning("health_db_unreachable", error=str(exc))
        return {"status": "error", "error": str(exc)}


async def _check_redis() -> dict:
    if not settings.redis_url:
        return {"status": "disabled"}
    start = time.perf_counter()
    try:
        r = Redis.from_url(settings.redis_url, socket_connect_timeout=2)
        try:
            await r.ping()
        finally:
            await r.aclose()
        return {"status": "ok", "latency_ms": round((time.perf_counter() - start) * 1000, 1)}
    except Exception as exc:
        logger.warning("health_redis_unreachable", error=str(exc))
        return {"status": "error", "error": str(exc)}


@router.get("/health")
async def health():
    db = await _check_db()
    redis = await _check_redis()

    healthy = db["status"] == "ok" and redis["status"] in ("ok", "disabled")
    overall = "ok" if healthy else "degraded"
    status_code = 200 if healthy else 503

    return JSONResponse(
        status_code=status_code,
        content={
            "status": overall,
            "dependencies": {
                "database": db,
                "redis": redis,
            },
        },
    )
