"""
Queue worker - pulls builds from Redis and executes them.
"""

import asyncio
import logging
import redis
import json
from typing import Optional, Any

from controller.src.config import get_settings
from controller.src.models.plugin import BuildJob
from controller.src.services.executor import BuildExecutor
from controller.src.services.status_reporter import BuildReporter, create_session_factory

logger = logging.getLogger(__name__)
settings = get_settings()

BUILD_QUEUE = "gantry:builds"
BUILD_STATUS = "gantry:status"

async def get_next_job(client: redis.Redis) -> Optional[BuildJob]:
    """Pull next build from Redis queue."""
    result = await asyncio.to_thread(client.brpop, BUILD_QUEUE, 5)
    if result:
        _, job_data = result
        return BuildJob(**json.loads(job_data))
    return None

def mark_job(client: redis.Redis, build_id: Any, status: str):
    try:
        client.hset(BUILD_STATUS, str(build_id), status)
    except redis.RedisError as e:
        logger.warning(f"Could not update queue status of build {build_id}: {e}")

async def worker_loop(executor: BuildExecutor, client: redis.Redis):
    """Main worker loop."""
    logger.info("Worker started, waiting for builds...")

    while True:
        try:
            job = await get_next_job(client)

            if job:
                build_id = job.build_id
                logger.info(f"Received build {build_id}")
                mark_job(client, build_id, "running")

                try:
                    success = await asyncio.to_thread(executor.execute, build_id)
                    mark_job(client, build_id, "success" if success else "failed")
                except Exception as e:
                    logger.exception(f"Failed to execute build {build_id}: {e}")
                    mark_job(client, build_id, "failed")

        except asyncio.CancelledError:
            logger.info("Worker shutting down...")
            break
        except Exception as e:
            logger.exception(f"Worker error: {e}")
            await asyncio.sleep(5)

def run_worker():
    """Entry point for worker."""
    reporter = BuildReporter(create_session_factory(settings.database_url))
    executor = BuildExecutor(reporter, settings)
    client = redis.from_url(settings.redis_url, decode_responses=True)

    try:
        asyncio.run(worker_loop(executor, client))
    except KeyboardInterrupt:
        logger.info("Worker shutting down...")
    finally:
        client.close()
