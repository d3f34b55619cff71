"""
Generic git/hg/svn hooks, triggered by POSTing query or form parameters.
"""

from typing import Mapping

from api.src.models.build import Project
from api.src.models.enums import BuildSource, WebhookType
from api.src.models.events import CommitEvent, NormalizedPayload

def generic_payload(params: Mapping[str, str], project: Project) -> dict:
    """The parameters a generic hook understands, with their defaults."""
    return {
        "branch": params.get("branch") or project.default_branch,
        "environment": params.get("environment") or None,
        "commit": str(params.get("commit", "")),
        "commit_message": str(params.get("message", "")),
        "committer": str(params.get("committer", "")),
    }

def normalize_generic(payload: dict, provider: WebhookType) -> NormalizedPayload:
    return NormalizedPayload(
        events=[
            CommitEvent(
                provider=provider,
                commit_id=payload["commit"],
                branch=payload["branch"],
                committer=payload["committer"],
                message=payload["commit_message"],
                source=BuildSource.WEBHOOK_PUSH,
                environment=payload["environment"],
            )
        ],
        batch=False,
    )
