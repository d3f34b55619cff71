"""Tests for webhook payload normalization."""

import pytest
from pydantic import ValidationError

from api.src.models.build import Project
from api.src.models.enums import BuildSource, WebhookType
from api.src.models.events import CommitEvent, Ignored, NormalizedPayload
from api.src.services.bitbucket import normalize_service, normalize_push as normalize_bitbucket_push
from api.src.services.bitbucket import normalize_server_pull_request
from api.src.services.github import ZERO_COMMIT, normalize_push
from api.src.services.gitlab import normalize_gitlab
from api.src.services.gogs import normalize_gogs
from api.src.services.normalizer import extract_email, strip_ref
from api.src.services.vcs import generic_payload, normalize_generic

def github_push(**overrides):
    payload = {
        "ref": "refs/heads/main",
        "after": "abc123",
        "head_commit": {
            "id": "abc123",
            "distinct": True,
            "message": "Fix tests",
            "committer": {"email": "jane@example.com"},
        },
        "pusher": {"name": "jane", "email": "pusher@example.com"},
    }
    payload.update(overrides)
    return payload

def test_extract_email_from_author():
    assert extract_email("Jane Doe <jane@x.com>") == "jane@x.com"

def test_extract_email_without_brackets():
    assert extract_email("jane@x.com") == "jane@x.com"

def test_strip_ref():
    assert strip_ref("refs/heads/feature/login") == "feature/login"
    assert strip_ref("main") == "main"

def test_github_push():
    result = normalize_push(github_push())

    assert isinstance(result, NormalizedPayload)
    assert result.batch is True
    event = result.events[0]
    assert event.commit_id == "abc123"
    assert event.branch == "main"
    assert event.tag is None
    assert event.committer == "jane@example.com"
    assert event.source == BuildSource.WEBHOOK_PUSH

def test_github_push_zero_commit_is_ignored():
    result = normalize_push(github_push(after=ZERO_COMMIT))
    assert isinstance(result, Ignored)

def test_github_push_non_distinct_commit_is_ignored():
    payload = github_push()
    payload["head_commit"]["distinct"] = False

    result = normalize_push(payload)

    assert result.events == [Ignored(commit_id="abc123", reason="Commit is not distinct.")]

def test_github_push_without_head_commit():
    result = normalize_push(github_push(head_commit=None))
    assert result == Ignored(reason="Unusable payload.")

def test_github_tag_push():
    result = normalize_push(github_push(ref="refs/tags/v1.0.0", base_ref="refs/heads/main"))

    event = result.events[0]
    assert event.tag == "v1.0.0"
    assert event.branch == "main"
    assert event.committer == "pusher@example.com"

def test_gitlab_push_builds_last_commit():
    payload = {
        "object_kind": "push",
        "ref": "refs/heads/develop",
        "commits": [
            {"id": "c1", "message": "first", "author": {"email": "a@example.com"}},
            {"id": "c2", "message": "second", "author": {"email": "b@example.com"}},
        ],
    }

    result = normalize_gitlab(payload)

    assert len(result.events) == 1
    assert result.events[0].commit_id == "c2"
    assert result.events[0].branch == "develop"
    assert result.events[0].committer == "b@example.com"

def test_gitlab_push_without_commits():
    result = normalize_gitlab({"object_kind": "push", "ref": "refs/heads/main", "commits": []})
    assert result == NormalizedPayload(events=[])

def test_gitlab_merge_request():
    payload = {
        "object_kind": "merge_request",
        "object_attributes": {
            "iid": 7,
            "state": "opened",
            "source_branch": "feature",
            "source": {"path_with_namespace": "group/fork"},
            "last_commit": {"id": "m1", "message": "WIP", "author": {"email": "dev@example.com"}},
        },
    }

    result = normalize_gitlab(payload)

    assert result.batch is False
    event = result.events[0]
    assert event.commit_id == "m1"
    assert event.branch == "feature"
    assert event.source == BuildSource.WEBHOOK_PULL_REQUEST_CREATED
    assert event.extra == {
        "pull_request_number": 7,
        "remote_branch": "feature",
        "remote_reference": "group/fork",
    }

def test_gitlab_closed_merge_request_is_unusable():
    payload = {"object_kind": "merge_request", "object_attributes": {"state": "merged"}}
    assert isinstance(normalize_gitlab(payload), Ignored)

def test_bitbucket_push_skips_deleted_branches():
    payload = {
        "push": {
            "changes": [
                {"new": None},
                {
                    "new": {
                        "name": "main",
                        "target": {
                            "hash": "b1",
                            "message": "Merge",
                            "author": {"raw": "Jane Doe <jane@x.com>"},
                        },
                    }
                },
            ]
        }
    }

    result = normalize_bitbucket_push(payload)

    assert [event.commit_id for event in result.events] == ["b1"]
    assert result.events[0].committer == "jane@x.com"

def test_bitbucket_legacy_service():
    payload = {
        "commits": [
            {"raw_node": "r1", "branch": "main", "raw_author": "Jane <jane@x.com>", "message": "one"},
            {"raw_node": "r2", "branch": "main", "raw_author": "jane@x.com", "message": "two"},
        ]
    }

    result = normalize_service(payload)

    assert [event.commit_id for event in result.events] == ["r1", "r2"]
    assert all(event.committer == "jane@x.com" for event in result.events)

def test_bitbucket_server_pull_request():
    payload = {
        "pullRequest": {
            "id": 3,
            "description": "Add feature",
            "author": {"user": {"emailAddress": "dev@example.com"}},
            "fromRef": {
                "displayId": "feature",
                "latestCommit": "s1",
                "repository": {"project": {"name": "PROJ"}},
            },
            "toRef": {"displayId": "main"},
        }
    }

    result = normalize_server_pull_request(payload, "pr:opened")

    event = result.events[0]
    assert event.branch == "main"
    assert event.source == BuildSource.WEBHOOK_PULL_REQUEST_CREATED
    assert event.extra["remote_branch"] == "feature"

def test_bitbucket_server_unsupported_trigger():
    result = normalize_server_pull_request({"pullRequest": {}}, "pr:deleted")
    assert result == Ignored(reason='Trigger type "pr:deleted" is not supported.')

def test_gogs_push_builds_every_commit():
    payload = {
        "ref": "refs/heads/main",
        "commits": [
            {"id": "g1", "message": "one", "author": {"email": "a@example.com"}},
            {"id": "g2", "message": "two", "author": {"email": "b@example.com"}},
        ],
    }

    result = normalize_gogs(payload)

    assert [event.commit_id for event in result.events] == ["g1", "g2"]
    assert {event.branch for event in result.events} == {"main"}

def test_generic_payload_defaults_to_project_branch():
    project = Project(default_branch="trunk")

    payload = generic_payload({"commit": "abc"}, project)

    assert payload["branch"] == "trunk"
    assert payload["environment"] is None

def test_normalize_generic_is_not_batched():
    payload = {
        "branch": "main",
        "environment": "staging",
        "commit": "abc",
        "commit_message": "msg",
        "committer": "jane@x.com",
    }

    result = normalize_generic(payload, WebhookType.HG)

    assert result.batch is False
    assert result.events == [
        CommitEvent(
            provider=WebhookType.HG,
            commit_id="abc",
            branch="main",
            committer="jane@x.com",
            message="msg",
            environment="staging",
        )
    ]

def test_commit_event_is_immutable():
    event = CommitEvent(provider=WebhookType.GIT, commit_id="abc", branch="main")
    with pytest.raises(ValidationError):
        event.branch = "other"
