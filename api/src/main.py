from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from api.src.config import get_settings
from api.src.errors import (
    ForbiddenError,
    InvalidPayloadError,
    NotFoundError,
    QueueError,
    TransportError,
)
from api.src.routes import health_router, builds_router, webhooks_router

logger = logging.getLogger(__name__)

settings = get_settings()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    print("🚀 Starting Gantry API")
    yield
    # Shutdown
    print("👋 Shutting down Gantry API")

app = FastAPI(
    title="Gantry",
    description="Self-hosted continuous integration server",
    version="0.1.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Webhook errors answer 200 with a {"status": "failed", "error"} body.
# Only provider transport failures use an error status.
async def webhook_failure_handler(request: Request, exc: Exception):
    logger.warning(f"Webhook {request.url.path} failed: {exc}")
    return JSONResponse(status_code=200, content={"status": "failed", "error": str(exc)})

for webhook_error in (NotFoundError, ForbiddenError, InvalidPayloadError, QueueError):
    app.add_exception_handler(webhook_error, webhook_failure_handler)

@app.exception_handler(TransportError)
async def transport_error_handler(request: Request, exc: TransportError):
    logger.error(f"Provider API call failed for {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"status": "failed", "error": str(exc)})

# Include routers
app.include_router(health_router)
app.include_router(builds_router, prefix="/api")
app.include_router(webhooks_router, prefix="/api")

@app.get("/")
async def root():
    return {
        "name": "Gantry",
        "version": "0.1.0",
        "docs": "/docs"
    }
