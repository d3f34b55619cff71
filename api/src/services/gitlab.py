"""
GitLab webhook normalization.
"""

from typing import Dict, Any

from api.src.models.enums import BuildSource, WebhookType
from api.src.models.events import CommitEvent, Ignored, NormalizedPayload, PullRequestInfo
from api.src.services.normalizer import NormalizeResult, strip_ref

MERGE_REQUEST_STATES = ("opened", "reopened")

def normalize_gitlab(payload: Dict[str, Any]) -> NormalizeResult:
    # Build on merge request events
    if payload.get("object_kind") == "merge_request":
        attributes = payload["object_attributes"]
        if attributes.get("state") in MERGE_REQUEST_STATES:
            commit = attributes["last_commit"]
            return NormalizedPayload(
                events=[
                    CommitEvent(
                        provider=WebhookType.GITLAB,
                        commit_id=commit["id"],
                        branch=attributes["source_branch"],
                        committer=commit.get("author", {}).get("email", ""),
                        message=commit.get("message", ""),
                        source=BuildSource.WEBHOOK_PULL_REQUEST_CREATED,
                        pull_request=PullRequestInfo(
                            number=attributes.get("iid", ""),
                            source_branch=attributes["source_branch"],
                            source_repo_full_name=attributes.get("source", {}).get("path_with_namespace", ""),
                            trigger_action=attributes.get("action") or attributes["state"],
                        ),
                    )
                ],
                batch=False,
            )

    # Build on push events, only the last pushed commit
    commits = payload.get("commits")
    if isinstance(commits, list):
        if not commits:
            return NormalizedPayload(events=[])

        commit = commits[-1]
        return NormalizedPayload(events=[
            CommitEvent(
                provider=WebhookType.GITLAB,
                commit_id=commit["id"],
                branch=strip_ref(payload.get("ref", "")),
                committer=commit.get("author", {}).get("email", ""),
                message=commit.get("message", ""),
            )
        ])

    return Ignored(reason="Unusable payload.")
