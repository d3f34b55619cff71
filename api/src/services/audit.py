"""
Best-effort audit trail of raw webhook payloads.
"""

import logging

from sqlalchemy.ext.asyncio import async_sessionmaker

from api.src.db.stores import WebhookRequestStore
from api.src.models.build import WebhookRequest
from api.src.models.enums import WebhookType

logger = logging.getLogger(__name__)

class WebhookAuditor:
    """
    Stores WebhookRequest rows in its own session, so it can run as a
    background task after the response. Failures never reach the caller.
    """

    def __init__(self, session_factory: async_sessionmaker, enabled: bool = False):
        self.session_factory = session_factory
        self.enabled = enabled

    async def log_webhook_request(self, project_id: int, webhook_type: WebhookType, payload: str):
        if not self.enabled or not payload:
            return

        try:
            async with self.session_factory() as session:
                await WebhookRequestStore(session).save(WebhookRequest(
                    project_id=project_id,
                    webhook_type=WebhookType(webhook_type).value,
                    payload=payload,
                ))
        except Exception as e:  # audit must never fail a webhook
            logger.debug(f"Could not store webhook request for project {project_id}: {e}")
