from enum import Enum

class ProjectType(str, Enum):
    LOCAL = "local"
    GIT = "git"
    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET = "bitbucket"
    BITBUCKET_HG = "bitbucket-hg"
    BITBUCKET_SERVER = "bitbucket-server"
    GOGS = "gogs"
    HG = "hg"
    SVN = "svn"

class BuildStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"

class BuildSource(str, Enum):
    UNKNOWN = "unknown"
    MANUAL = "manual"
    MANUAL_REBUILD = "manual-rebuild"
    PERIODICAL = "periodical"
    WEBHOOK_PUSH = "webhook-push"
    WEBHOOK_PULL_REQUEST_CREATED = "webhook-pr-created"
    WEBHOOK_PULL_REQUEST_UPDATED = "webhook-pr-updated"
    WEBHOOK_PULL_REQUEST_APPROVED = "webhook-pr-approved"
    WEBHOOK_PULL_REQUEST_MERGED = "webhook-pr-merged"

class WebhookType(str, Enum):
    GIT = "git"
    HG = "hg"
    SVN = "svn"
    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET = "bitbucket"
    GOGS = "gogs"
