"""
Turn normalized webhook events into builds and webhook responses.
"""

import logging
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError

from api.src.errors import BuildConflictError, NotFoundError, QueueError
from api.src.models.build import Project
from api.src.models.events import CommitEvent, Ignored, NormalizedPayload
from api.src.services.build_service import BuildService, make_dedup_key
from api.src.services.deduplicator import BuildDeduplicator, CreateBuild, SkipBuild

logger = logging.getLogger(__name__)

def ignored_response(item: Ignored) -> Dict[str, Any]:
    response = {"status": "ignored"}
    if item.reason:
        response["message"] = item.reason
    return response

class BuildTrigger:
    def __init__(self, deduplicator: BuildDeduplicator, build_service: BuildService):
        self.deduplicator = deduplicator
        self.build_service = build_service

    async def trigger(self, project: Project, event: CommitEvent) -> Dict[str, Any]:
        """Create the builds admitted for one commit event."""
        decisions = await self.deduplicator.decide(project, event)

        created: List[Dict[str, Any]] = []
        duplicates: List[int] = []
        for decision in decisions:
            if isinstance(decision, SkipBuild):
                if decision.duplicate_of is None:
                    return {"status": "ignored", "message": decision.reason}
                duplicates.append(decision.duplicate_of)
                continue

            build_id = await self._create(project, event, decision)
            if build_id is None:
                duplicates.append(await self._conflicting_build_id(project, event, decision))
            else:
                created.append({"id": build_id, "environment": decision.environment_id})

        if not project.environments:
            if created:
                return {"status": "ok", "buildID": created[0]["id"]}
            return {"status": "ignored", "message": f"Duplicate of build #{duplicates[0]}"}

        duplicate_ids = ", ".join(str(build_id) for build_id in duplicates)
        if created and duplicates:
            return {
                "status": "ok",
                "builds": created,
                "message": f"For this commit some builds already exists ({duplicate_ids})",
            }
        if created:
            return {"status": "ok", "builds": created}
        return {
            "status": "ignored",
            "message": f"For this commit already created builds ({duplicate_ids})",
        }

    async def trigger_all(self, project: Project, normalized: NormalizedPayload) -> Dict[str, Any]:
        """
        Answer a whole payload. Single-event payloads return that event's
        result; batches return per-commit results and fail only when no
        commit could be processed.
        """
        if not normalized.batch:
            item = normalized.events[0]
            if isinstance(item, Ignored):
                return ignored_response(item)
            return await self.trigger(project, item)

        results: Dict[str, Any] = {}
        status = "failed"
        for item in normalized.events:
            if isinstance(item, Ignored):
                results[item.commit_id] = ignored_response(item)
                continue

            try:
                results[item.commit_id] = await self.trigger(project, item)
                status = "ok"
            except (NotFoundError, QueueError) as e:
                logger.error(f"Failed to create build for commit {item.commit_id}: {e}")
                results[item.commit_id] = {"status": "failed", "error": str(e)}
            except SQLAlchemyError as e:
                logger.error(f"Failed to create build for commit {item.commit_id}: {e}")
                await self._reset_session(project)
                results[item.commit_id] = {"status": "failed", "error": str(e)}

        return {"status": status, "commits": results}

    async def _create(self, project: Project, event: CommitEvent, decision: CreateBuild):
        try:
            build = await self.build_service.create_build(
                project,
                decision.environment_id,
                event.commit_id,
                decision.branch,
                decision.tag,
                event.committer,
                event.message,
                event.source,
                None,
                event.extra,
            )
        except BuildConflictError as e:
            # A concurrent webhook created the same build first.
            # The rollback expired the project, reload it for later events.
            logger.info(str(e))
            await self.deduplicator.build_store.session.refresh(project)
            return None
        return build.id

    async def _reset_session(self, project: Project):
        session = self.deduplicator.build_store.session
        await session.rollback()
        await session.refresh(project)

    async def _conflicting_build_id(self, project, event, decision) -> int:
        key = make_dedup_key(project.id, event.commit_id, decision.environment_id, decision.tag)
        build = await self.deduplicator.build_store.get_by_dedup_key(key)
        return build.id if build else 0
