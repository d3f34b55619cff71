"""
Provider-agnostic representation of inbound VCS notifications.
"""

from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List, Optional, Union

from api.src.models.enums import BuildSource, WebhookType

class PullRequestInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: Union[int, str]
    source_branch: str
    source_repo_full_name: str
    trigger_action: str

class CommitEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: WebhookType
    commit_id: str
    branch: str
    tag: Optional[str] = None
    committer: str = ""
    message: str = ""
    source: BuildSource = BuildSource.WEBHOOK_PUSH
    # Explicit environment name, only sent by the generic hooks
    environment: Optional[str] = None
    pull_request: Optional[PullRequestInfo] = None

    @property
    def extra(self) -> Optional[Dict[str, Any]]:
        if self.pull_request is None:
            return None
        return {
            "pull_request_number": self.pull_request.number,
            "remote_branch": self.pull_request.source_branch,
            "remote_reference": self.pull_request.source_repo_full_name,
        }

class Ignored(BaseModel):
    """A payload (or one commit of it) that is valid but not actionable."""
    model_config = ConfigDict(frozen=True)

    reason: str = ""
    commit_id: Optional[str] = None

class NormalizedPayload(BaseModel):
    """
    Result of normalizing one webhook payload.
    With `batch` the webhook answers per commit id, otherwise it
    answers with the result of the single event.
    """
    model_config = ConfigDict(frozen=True)

    events: List[Union[CommitEvent, Ignored]]
    batch: bool = True
