"""
Gogs webhooks: pushes build every commit, pull requests move the head
branch between environments according to "env:<name>" labels.
"""

import logging
from typing import Any, Dict, List

from api.src.db.stores import EnvironmentStore
from api.src.models.build import Project
from api.src.models.enums import BuildSource, WebhookType
from api.src.models.events import CommitEvent, Ignored, NormalizedPayload
from api.src.services.build_service import BuildService
from api.src.services.normalizer import NormalizeResult, strip_ref

logger = logging.getLogger(__name__)

ACTIVE_ACTIONS = ("opened", "reopened", "label_updated", "label_cleared")
INACTIVE_ACTIONS = ("closed",)
ACTIVE_STATES = ("open",)
INACTIVE_STATES = ("closed",)
ENVIRONMENT_LABEL_PREFIX = "env:"

def normalize_gogs(payload: Dict[str, Any]) -> NormalizeResult:
    commits = payload.get("commits")
    if not isinstance(commits, list):
        return Ignored(reason="Unusable payload.")

    branch = strip_ref(payload.get("ref", ""))
    return NormalizedPayload(events=[
        CommitEvent(
            provider=WebhookType.GOGS,
            commit_id=commit["id"],
            branch=branch,
            committer=commit.get("author", {}).get("email", ""),
            message=commit.get("message", ""),
        )
        for commit in commits
    ])

def environment_labels(pull_request: Dict[str, Any]) -> List[str]:
    names = []
    for label in pull_request.get("labels") or []:
        name = label.get("name", "")
        if name.startswith(ENVIRONMENT_LABEL_PREFIX):
            names.append(name[len(ENVIRONMENT_LABEL_PREFIX):])
    return names

async def sync_pull_request_environments(
    project: Project,
    payload: Dict[str, Any],
    environment_store: EnvironmentStore,
    build_service: BuildService,
) -> Dict[str, Any]:
    """
    Add the pull request head branch to labelled environments and remove
    it from the others, then rebuild every environment that changed.
    """
    pull_request = payload["pull_request"]
    head_branch = pull_request["head_branch"]
    action = payload.get("action")
    state = pull_request.get("state")

    if action not in ACTIVE_ACTIONS and action not in INACTIVE_ACTIONS:
        return {"status": "ignored", "message": f"Action {action} ignored"}
    if state not in ACTIVE_STATES and state not in INACTIVE_STATES:
        return {"status": "ignored", "message": f"State {state} ignored"}

    wanted = []
    if action in ACTIVE_ACTIONS and state in ACTIVE_STATES:
        wanted = environment_labels(pull_request)

    updated = []
    for environment in project.environments:
        branches = list(environment.branches or [])
        if environment.name in wanted:
            if head_branch in branches:
                continue
            environment.branches = branches + [head_branch]
        elif head_branch in branches:
            environment.branches = [branch for branch in branches if branch != head_branch]
        else:
            continue

        await environment_store.save(environment)
        updated.append(environment.id)

    if state == "closed" and pull_request.get("merged"):
        # Merged code reaches every environment of the base branch
        updated.extend(project.get_environment_ids_by_branch(pull_request["base_branch"]))

    updated = list(dict.fromkeys(updated))
    if not updated:
        return {"status": "ignored", "message": "Branch environments not changed"}

    for environment_id in updated:
        await build_service.create_build(
            project,
            environment_id,
            "",
            project.default_branch,
            None,
            None,
            None,
            BuildSource.WEBHOOK_PUSH,
        )

    logger.info(f"Project {project.id}: environments {updated} updated for branch {head_branch}")
    return {
        "status": "ok",
        "message": "Branch environments updated " + ", ".join(str(env_id) for env_id in updated),
    }
