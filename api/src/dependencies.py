"""
FastAPI dependencies wiring stores and services per request.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
import httpx

from api.src.config import Settings, get_settings
from api.src.db.database import get_db, get_sessionmaker
from api.src.db.stores import BuildStore, EnvironmentStore, ProjectStore
from api.src.services.audit import WebhookAuditor
from api.src.services.build_service import BuildService
from api.src.services.deduplicator import BuildDeduplicator
from api.src.services.queue import BuildQueue
from api.src.services.trigger import BuildTrigger

async def get_http_client(settings: Settings = Depends(get_settings)):
    async with httpx.AsyncClient(timeout=settings.provider_api_timeout) as client:
        yield client

def get_build_queue(settings: Settings = Depends(get_settings)) -> BuildQueue:
    return BuildQueue(settings.redis_url)

def get_auditor(settings: Settings = Depends(get_settings)) -> WebhookAuditor:
    return WebhookAuditor(get_sessionmaker(), settings.webhook_log_requests)

def get_project_store(db: AsyncSession = Depends(get_db)) -> ProjectStore:
    return ProjectStore(db)

def get_environment_store(db: AsyncSession = Depends(get_db)) -> EnvironmentStore:
    return EnvironmentStore(db)

def get_build_store(db: AsyncSession = Depends(get_db)) -> BuildStore:
    return BuildStore(db)

def get_build_service(
    build_store: BuildStore = Depends(get_build_store),
    queue: BuildQueue = Depends(get_build_queue),
) -> BuildService:
    return BuildService(build_store, queue)

def get_build_trigger(
    build_store: BuildStore = Depends(get_build_store),
    environment_store: EnvironmentStore = Depends(get_environment_store),
    build_service: BuildService = Depends(get_build_service),
) -> BuildTrigger:
    return BuildTrigger(BuildDeduplicator(build_store, environment_store), build_service)
