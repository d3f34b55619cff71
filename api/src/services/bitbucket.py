"""
Bitbucket Cloud and Bitbucket Server webhook normalization.
"""

from typing import Dict, Any, Optional

import httpx

from api.src.config import Settings
from api.src.errors import ForbiddenError
from api.src.models.enums import BuildSource, WebhookType
from api.src.models.events import CommitEvent, Ignored, NormalizedPayload, PullRequestInfo
from api.src.services.normalizer import NormalizeResult, extract_email, fetch_json

PULL_REQUEST_TRIGGERS = {
    "pullrequest:created": BuildSource.WEBHOOK_PULL_REQUEST_CREATED,
    "pullrequest:updated": BuildSource.WEBHOOK_PULL_REQUEST_UPDATED,
    "pullrequest:approved": BuildSource.WEBHOOK_PULL_REQUEST_APPROVED,
    "pullrequest:fulfilled": BuildSource.WEBHOOK_PULL_REQUEST_MERGED,
}

SERVER_PULL_REQUEST_TRIGGERS = {
    "pr:opened": BuildSource.WEBHOOK_PULL_REQUEST_CREATED,
    "pr:modified": BuildSource.WEBHOOK_PULL_REQUEST_UPDATED,
    "pr:from_ref_updated": BuildSource.WEBHOOK_PULL_REQUEST_UPDATED,
    "pr:reviewer:approved": BuildSource.WEBHOOK_PULL_REQUEST_APPROVED,
    "pr:merged": BuildSource.WEBHOOK_PULL_REQUEST_MERGED,
}

async def normalize_bitbucket(
    payload: Dict[str, Any],
    event_key: Optional[str],
    client: httpx.AsyncClient,
    settings: Settings,
) -> NormalizeResult:
    """Dispatch a Bitbucket webhook body on its shape."""
    if payload.get("pullrequest"):
        return await normalize_pull_request(payload, event_key, client, settings)

    if payload.get("pullRequest"):
        return normalize_server_pull_request(payload, event_key)

    if payload.get("push", {}).get("changes"):
        return normalize_push(payload)

    # Unknown Bitbucket event, answered as a failed empty batch
    return NormalizedPayload(events=[])

def normalize_service(payload: Dict[str, Any]) -> NormalizeResult:
    """Legacy Bitbucket POST service: every listed commit is built."""
    events = []
    for commit in payload.get("commits", []):
        events.append(CommitEvent(
            provider=WebhookType.BITBUCKET,
            commit_id=commit["raw_node"],
            branch=commit["branch"],
            committer=extract_email(commit.get("raw_author", "")),
            message=commit.get("message", ""),
        ))
    return NormalizedPayload(events=events)

def normalize_push(payload: Dict[str, Any]) -> NormalizeResult:
    events = []
    for change in payload["push"]["changes"]:
        new = change.get("new")
        # Deleted branches have no new target
        if not new:
            continue

        target = new["target"]
        events.append(CommitEvent(
            provider=WebhookType.BITBUCKET,
            commit_id=target["hash"],
            branch=new["name"],
            committer=extract_email(target.get("author", {}).get("raw", "")),
            message=target.get("message", ""),
        ))
    return NormalizedPayload(events=events)

async def normalize_pull_request(
    payload: Dict[str, Any],
    event_key: Optional[str],
    client: httpx.AsyncClient,
    settings: Settings,
) -> NormalizeResult:
    trigger = (event_key or "").strip()
    if trigger not in PULL_REQUEST_TRIGGERS:
        return Ignored(reason=f'Trigger type "{trigger}" is not supported.')

    if not settings.bitbucket_username or not settings.bitbucket_app_password:
        raise ForbiddenError("Please provide Username and App Password of your Bitbucket account.")

    pull_request = payload["pullrequest"]
    response = await fetch_json(
        client,
        pull_request["links"]["commits"]["href"],
        auth=(settings.bitbucket_username, settings.bitbucket_app_password),
    )

    # The payload carries a short hash of the source head
    head_hash = pull_request["source"]["commit"]["hash"]
    info = PullRequestInfo(
        number=pull_request["id"],
        source_branch=pull_request["source"]["branch"]["name"],
        source_repo_full_name=pull_request["source"]["repository"]["full_name"],
        trigger_action=trigger,
    )

    events = []
    for commit in response.get("values", []):
        commit_id = commit["hash"]
        if not commit_id.startswith(head_hash):
            events.append(Ignored(commit_id=commit_id, reason="not branch head"))
            continue

        events.append(CommitEvent(
            provider=WebhookType.BITBUCKET,
            commit_id=commit_id,
            branch=pull_request["destination"]["branch"]["name"],
            committer=extract_email(commit.get("author", {}).get("raw", "")),
            message=commit.get("message", ""),
            source=PULL_REQUEST_TRIGGERS[trigger],
            pull_request=info,
        ))

    return NormalizedPayload(events=events)

def normalize_server_pull_request(payload: Dict[str, Any], event_key: Optional[str]) -> NormalizeResult:
    trigger = (event_key or "").strip()
    if trigger not in SERVER_PULL_REQUEST_TRIGGERS:
        return Ignored(reason=f'Trigger type "{trigger}" is not supported.')

    pull_request = payload["pullRequest"]
    from_ref = pull_request["fromRef"]

    return NormalizedPayload(events=[
        CommitEvent(
            provider=WebhookType.BITBUCKET,
            commit_id=from_ref["latestCommit"],
            branch=pull_request["toRef"]["displayId"],
            committer=pull_request.get("author", {}).get("user", {}).get("emailAddress", ""),
            message=pull_request.get("description") or "",
            source=SERVER_PULL_REQUEST_TRIGGERS[trigger],
            pull_request=PullRequestInfo(
                number=pull_request["id"],
                source_branch=from_ref["displayId"],
                source_repo_full_name=from_ref["repository"]["project"]["name"],
                trigger_action=trigger,
            ),
        )
    ])
