from api.src.services.github import normalize_github, verify_signature
from api.src.services.gitlab import normalize_gitlab
from api.src.services.bitbucket import normalize_bitbucket, normalize_service
from api.src.services.gogs import normalize_gogs, sync_pull_request_environments
from api.src.services.vcs import generic_payload, normalize_generic
from api.src.services.normalizer import extract_email, strip_ref
from api.src.services.deduplicator import BuildDeduplicator, CreateBuild, SkipBuild
from api.src.services.build_service import BuildService
from api.src.services.trigger import BuildTrigger
from api.src.services.queue import BuildQueue
from api.src.services.audit import WebhookAuditor

__all__ = [
    "normalize_github",
    "verify_signature",
    "normalize_gitlab",
    "normalize_bitbucket",
    "normalize_service",
    "normalize_gogs",
    "sync_pull_request_environments",
    "generic_payload",
    "normalize_generic",
    "extract_email",
    "strip_ref",
    "BuildDeduplicator",
    "CreateBuild",
    "SkipBuild",
    "BuildService",
    "BuildTrigger",
    "BuildQueue",
    "WebhookAuditor",
]
