from api.src.models.build import Project, Environment, Build, WebhookRequest
from api.src.models.enums import ProjectType, BuildStatus, BuildSource, WebhookType
from api.src.models.events import CommitEvent, PullRequestInfo, Ignored, NormalizedPayload
from api.src.models.schemas import BuildResponse, BuildLogResponse

__all__ = [
    "Project",
    "Environment",
    "Build",
    "WebhookRequest",
    "ProjectType",
    "BuildStatus",
    "BuildSource",
    "WebhookType",
    "CommitEvent",
    "PullRequestInfo",
    "Ignored",
    "NormalizedPayload",
    "BuildResponse",
    "BuildLogResponse",
]
