from typing import Any, Dict, Tuple

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from api.src.db.database import get_db
from api.src.db.stores import BuildStore
from api.src.dependencies import get_build_queue, get_build_store
from api.src.services.queue import BuildQueue

router = APIRouter(tags=["health"])

async def check_database(db: AsyncSession) -> Tuple[bool, str]:
    try:
        await db.execute(text("SELECT 1"))
        return True, "connected"
    except Exception as e:
        return False, str(e)

async def check_queue(queue: BuildQueue) -> Tuple[bool, Any]:
    try:
        await queue.ping()
        return True, await queue.get_queue_length()
    except Exception as e:
        return False, str(e)

def state(ok: bool) -> str:
    return "healthy" if ok else "unhealthy"

@router.get("/health")
async def health_check():
    return {"status": "healthy", "service": "gantry-api"}

@router.get("/health/db")
async def db_health_check(db: AsyncSession = Depends(get_db)):
    ok, detail = await check_database(db)
    return {"status": state(ok), "database": detail}

@router.get("/health/redis")
async def redis_health_check(queue: BuildQueue = Depends(get_build_queue)):
    ok, detail = await check_queue(queue)
    return {"status": state(ok), "redis": "connected" if ok else detail}

@router.get("/health/queue")
async def queue_health_check(queue: BuildQueue = Depends(get_build_queue)):
    ok, detail = await check_queue(queue)
    if not ok:
        return {"status": "unhealthy", "error": detail}
    return {"status": "healthy", "queue_length": detail}

@router.get("/health/all")
async def full_health_check(
    db: AsyncSession = Depends(get_db),
    queue: BuildQueue = Depends(get_build_queue),
    builds: BuildStore = Depends(get_build_store),
):
    """
    Combined check of the database and the build queue. Build counts per
    status are included when the database is reachable.
    """
    db_ok, db_detail = await check_database(db)
    queue_ok, queue_detail = await check_queue(queue)

    services: Dict[str, Any] = {
        "api": "healthy",
        "database": state(db_ok) if db_ok else f"unhealthy: {db_detail}",
        "redis": state(queue_ok) if queue_ok else f"unhealthy: {queue_detail}",
        "queue_length": queue_detail if queue_ok else 0,
    }
    if db_ok:
        services["builds"] = await builds.count_by_status()

    return {"status": "healthy" if db_ok and queue_ok else "degraded", "services": services}
