"""
GitHub webhook validation and normalization.
"""

import hmac
import hashlib
from typing import Dict, Any

import httpx

from api.src.config import Settings
from api.src.models.enums import BuildSource, WebhookType
from api.src.models.events import CommitEvent, Ignored, NormalizedPayload, PullRequestInfo
from api.src.services.normalizer import (
    TAG_REF_PREFIX,
    NormalizeResult,
    fetch_json,
    strip_ref,
)

# GitHub sends this "after" commit when a branch is deleted
ZERO_COMMIT = "0" * 40

PULL_REQUEST_TRIGGERS = {
    "opened": BuildSource.WEBHOOK_PULL_REQUEST_CREATED,
    "synchronize": BuildSource.WEBHOOK_PULL_REQUEST_UPDATED,
    "reopened": BuildSource.WEBHOOK_PULL_REQUEST_UPDATED,
    "edited": BuildSource.WEBHOOK_PULL_REQUEST_UPDATED,
}

def verify_signature(payload: bytes, signature: str, secret: str) -> bool:
    """Verify GitHub webhook signature."""
    if not secret:
        # Skip verification if no secret configured (development)
        return True

    expected = "sha256=" + hmac.new(
        secret.encode(),
        payload,
        hashlib.sha256
    ).hexdigest()
    return hmac.compare_digest(expected, signature)

async def normalize_github(
    payload: Dict[str, Any],
    client: httpx.AsyncClient,
    settings: Settings,
) -> NormalizeResult:
    """Turn a GitHub push or pull request payload into commit events."""
    if "pull_request" in payload:
        return await normalize_pull_request(payload, client, settings)

    if "head_commit" in payload:
        return normalize_push(payload)

    return Ignored(reason="Unusable payload.")

def normalize_push(payload: Dict[str, Any]) -> NormalizeResult:
    # Closing a pull request sends a push for a commit that does not exist
    if payload.get("after") == ZERO_COMMIT:
        return Ignored(reason="Branch deleted, nothing to build.")

    commit = payload.get("head_commit")
    if not commit:
        return Ignored(reason="Unusable payload.")

    if not commit.get("distinct", True):
        return NormalizedPayload(events=[
            Ignored(commit_id=commit["id"], reason="Commit is not distinct.")
        ])

    ref = payload.get("ref", "")
    tag = None
    if ref.startswith(TAG_REF_PREFIX):
        tag = strip_ref(ref, TAG_REF_PREFIX)
        branch = strip_ref(payload.get("base_ref") or "")
        committer = payload.get("pusher", {}).get("email", "")
    else:
        branch = strip_ref(ref)
        committer = commit.get("committer", {}).get("email", "")

    return NormalizedPayload(events=[
        CommitEvent(
            provider=WebhookType.GITHUB,
            commit_id=commit["id"],
            branch=branch,
            tag=tag,
            committer=committer or "",
            message=commit.get("message", ""),
            source=BuildSource.WEBHOOK_PUSH,
        )
    ])

async def normalize_pull_request(
    payload: Dict[str, Any],
    client: httpx.AsyncClient,
    settings: Settings,
) -> NormalizeResult:
    """
    Build only the head commit of a pull request.
    The commit list comes from the GitHub API; a failed call raises TransportError.
    """
    trigger = (payload.get("action") or "").strip()
    if trigger not in PULL_REQUEST_TRIGGERS:
        return Ignored(reason=f'Trigger type "{trigger}" is not supported.')

    headers = {}
    if settings.github_token:
        headers["Authorization"] = f"token {settings.github_token}"

    # Large pull requests may need more than the default page of commits
    params = {}
    if settings.github_per_page:
        params["per_page"] = settings.github_per_page

    pull_request = payload["pull_request"]
    commits = await fetch_json(
        client,
        pull_request["commits_url"],
        headers=headers,
        params=params,
    )

    head_sha = pull_request["head"]["sha"]
    info = PullRequestInfo(
        number=payload["number"],
        source_branch=pull_request["head"]["ref"],
        source_repo_full_name=pull_request["head"]["repo"]["full_name"],
        trigger_action=trigger,
    )

    events = []
    for commit in commits:
        commit_id = commit["sha"]
        if commit_id != head_sha:
            events.append(Ignored(commit_id=commit_id, reason="not branch head"))
            continue

        events.append(CommitEvent(
            provider=WebhookType.GITHUB,
            commit_id=commit_id,
            branch=strip_ref(pull_request["base"]["ref"]),
            committer=commit["commit"]["author"].get("email", ""),
            message=commit["commit"].get("message", ""),
            source=PULL_REQUEST_TRIGGERS[trigger],
            pull_request=info,
        ))

    return NormalizedPayload(events=events)
