"""
Redis queue service for build jobs.
"""

import redis.asyncio as redis
import json
from typing import Optional
from datetime import datetime

BUILD_QUEUE = "gantry:builds"
BUILD_STATUS = "gantry:status"

class BuildQueue:
    def __init__(self, redis_url: str):
        self.redis_url = redis_url

    async def get_redis_client(self) -> redis.Redis:
        """Get async Redis client."""
        return redis.from_url(self.redis_url, decode_responses=True)

    async def enqueue_build(self, build_id: int, project_id: int):
        """Add a build to the processing queue."""
        client = await self.get_redis_client()

        job = {
            "build_id": build_id,
            "project_id": project_id,
            "queued_at": datetime.utcnow().isoformat(),
        }

        try:
            await client.lpush(BUILD_QUEUE, json.dumps(job))
            await client.hset(BUILD_STATUS, str(build_id), "queued")
        finally:
            await client.aclose()

    async def get_build_status(self, build_id: int) -> Optional[str]:
        """Get live build status from Redis."""
        client = await self.get_redis_client()

        try:
            return await client.hget(BUILD_STATUS, str(build_id))
        finally:
            await client.aclose()

    async def get_queue_length(self) -> int:
        """Get number of builds in queue."""
        client = await self.get_redis_client()

        try:
            return await client.llen(BUILD_QUEUE)
        finally:
            await client.aclose()

    async def ping(self) -> bool:
        client = await self.get_redis_client()

        try:
            return await client.ping()
        finally:
            await client.aclose()
