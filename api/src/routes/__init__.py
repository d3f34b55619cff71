from api.src.routes.health import router as health_router
from api.src.routes.builds import router as builds_router
from api.src.routes.webhooks import router as webhooks_router

__all__ = ["health_router", "builds_router", "webhooks_router"]
