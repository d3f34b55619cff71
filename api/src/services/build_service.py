"""
Create builds and hand them to the controller queue.
"""

import logging
from typing import Any, Dict, Optional

from redis.exceptions import RedisError

from api.src.db.stores import BuildStore
from api.src.errors import NotFoundError, QueueError
from api.src.models.build import Build, Project
from api.src.models.enums import BuildSource, BuildStatus
from api.src.services.queue import BuildQueue

logger = logging.getLogger(__name__)

def make_dedup_key(
    project_id: int,
    commit_id: str,
    environment_id: Optional[int],
    tag: Optional[str],
    parent_build_id: Optional[int] = None,
) -> Optional[str]:
    """Unique key guarding against concurrent duplicate webhooks."""
    # Rebuilds and commit-less environment builds may repeat
    if not commit_id or parent_build_id:
        return None
    return f"{project_id}:{commit_id}:{environment_id or ''}:{tag or ''}"

class BuildService:
    """
    Persists new builds. Duplicate detection happens upstream in the
    deduplicator; calling create_build twice creates two builds.
    """

    def __init__(self, build_store: BuildStore, queue: Optional[BuildQueue] = None):
        self.build_store = build_store
        self.queue = queue

    async def create_build(
        self,
        project: Project,
        environment_id: Optional[int],
        commit_id: str,
        branch: str,
        tag: Optional[str],
        committer: Optional[str],
        commit_message: Optional[str],
        source: BuildSource,
        parent_build_id: Optional[int] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> Build:
        if project.archived:
            raise NotFoundError(f"Project with id {project.id} not found")

        build = Build(
            project_id=project.id,
            environment_id=environment_id,
            parent_build_id=parent_build_id,
            commit_id=commit_id or "",
            branch=branch,
            tag=tag,
            committer_email=committer,
            commit_message=commit_message,
            source=BuildSource(source).value,
            status=BuildStatus.PENDING.value,
            extra=dict(extra or {}),
            meta={},
            dedup_key=make_dedup_key(project.id, commit_id, environment_id, tag, parent_build_id),
        )
        build = await self.build_store.save(build)

        if self.queue is not None:
            try:
                await self.queue.enqueue_build(build.id, project.id)
            except RedisError as e:
                # Builds are only kept once they are queued
                build_id = build.id
                await self.build_store.delete(build)
                logger.error(f"Could not queue build {build_id}, build removed: {e}")
                raise QueueError(f"Could not queue build: {e}") from e

        logger.info(f"Build {build.id} created for project {project.id} ({build.source})")
        return build
