"""
Decide which builds a commit event should create.

A commit is built once per environment (or once when the project has no
environments). An existing build for the same environment blocks a new one,
unless the event carries a tag that none of the commit's builds has yet.
"""

from typing import Dict, List, Optional, Union

from pydantic import BaseModel

from api.src.db.stores import BuildStore, EnvironmentStore
from api.src.errors import NotFoundError
from api.src.models.build import Project
from api.src.models.events import CommitEvent

NON_DEFAULT_BRANCH_MESSAGE = (
    "The branch is not a branch by default. Build is allowed only for the branch by default."
)
NO_ENVIRONMENT_MESSAGE = "Branch not assigned to any environment"

class CreateBuild(BaseModel):
    environment_id: Optional[int] = None
    branch: str
    tag: Optional[str] = None

class SkipBuild(BaseModel):
    reason: str
    duplicate_of: Optional[int] = None
    environment_id: Optional[int] = None

BuildDecision = Union[CreateBuild, SkipBuild]

def find_duplicate(
    environment_id: Optional[int],
    tag: Optional[str],
    environment_of: Dict[int, Optional[int]],
    tag_of: Dict[int, Optional[str]],
) -> Optional[int]:
    """
    Id of the existing build that makes this environment/tag pair a duplicate.
    A tag not yet seen for the commit always allows a new build.
    """
    duplicate_of = next(
        (build_id for build_id, existing in environment_of.items() if existing == environment_id),
        None,
    )
    if duplicate_of is None:
        return None
    if tag and tag not in tag_of.values():
        return None
    return duplicate_of

class BuildDeduplicator:
    def __init__(self, build_store: BuildStore, environment_store: EnvironmentStore):
        self.build_store = build_store
        self.environment_store = environment_store

    async def decide(self, project: Project, event: CommitEvent) -> List[BuildDecision]:
        if project.archived:
            raise NotFoundError(f"Project with id {project.id} not found")

        existing = await self.build_store.get_by_project_and_commit(project.id, event.commit_id)
        environment_of = {build.id: build.environment_id for build in existing["items"]}
        tag_of = {build.id: build.tag for build in existing["items"]}

        if project.default_branch_only and event.branch != project.default_branch:
            return [SkipBuild(reason=NON_DEFAULT_BRANCH_MESSAGE)]

        if not project.environments:
            return [self._decide(None, event.branch, event.tag, environment_of, tag_of)]

        environment = await self.environment_store.get_by_name_and_project_id(
            event.environment, project.id
        )
        if environment is not None:
            environment_ids = [environment.id]
        else:
            environment_ids = project.get_environment_ids_by_branch(event.branch)
            if not environment_ids:
                return [SkipBuild(reason=NO_ENVIRONMENT_MESSAGE)]

        # Environment builds merge their branches onto the default branch
        return [
            self._decide(environment_id, project.default_branch, event.tag, environment_of, tag_of)
            for environment_id in environment_ids
        ]

    @staticmethod
    def _decide(environment_id, branch, tag, environment_of, tag_of) -> BuildDecision:
        duplicate_of = find_duplicate(environment_id, tag, environment_of, tag_of)
        if duplicate_of is not None:
            return SkipBuild(
                reason=f"Duplicate of build #{duplicate_of}",
                duplicate_of=duplicate_of,
                environment_id=environment_id,
            )
        return CreateBuild(environment_id=environment_id, branch=branch, tag=tag)
