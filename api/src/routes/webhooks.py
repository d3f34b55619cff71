"""
Webhook endpoints, one per VCS provider.
"""

from fastapi import APIRouter, Request, Header, Depends, BackgroundTasks
from typing import Any, Callable, Dict, Optional, Tuple
import inspect
import json
import logging

import httpx

from api.src.config import Settings, get_settings
from api.src.db.stores import EnvironmentStore, ProjectStore
from api.src.dependencies import (
    get_auditor,
    get_build_service,
    get_build_trigger,
    get_environment_store,
    get_http_client,
    get_project_store,
)
from api.src.errors import ForbiddenError, InvalidPayloadError, NotFoundError
from api.src.models.build import Project
from api.src.models.enums import ProjectType, WebhookType
from api.src.models.events import Ignored
from api.src.services.audit import WebhookAuditor
from api.src.services.bitbucket import normalize_bitbucket, normalize_service
from api.src.services.build_service import BuildService
from api.src.services.github import normalize_github, verify_signature
from api.src.services.gitlab import normalize_gitlab
from api.src.services.gogs import normalize_gogs, sync_pull_request_environments
from api.src.services.trigger import BuildTrigger
from api.src.services.vcs import generic_payload, normalize_generic

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhooks"])

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Project types each webhook may trigger
PROVIDER_PROJECT_TYPES = {
    WebhookType.GIT: (ProjectType.LOCAL, ProjectType.GIT, ProjectType.GITHUB),
    WebhookType.HG: (ProjectType.LOCAL, ProjectType.HG),
    WebhookType.SVN: (ProjectType.SVN,),
    WebhookType.GITHUB: (ProjectType.GITHUB, ProjectType.GIT),
    WebhookType.GITLAB: (ProjectType.GITLAB, ProjectType.GIT),
    WebhookType.BITBUCKET: (
        ProjectType.BITBUCKET,
        ProjectType.BITBUCKET_HG,
        ProjectType.BITBUCKET_SERVER,
        ProjectType.GIT,
        ProjectType.HG,
    ),
    WebhookType.GOGS: (ProjectType.GOGS, ProjectType.GIT),
}

async def fetch_project(project_id: int, webhook_type: WebhookType, store: ProjectStore) -> Project:
    """Fetch a project and check its type."""
    project = await store.get_by_id(project_id) if project_id else None
    if project is None:
        raise NotFoundError(f"Project does not exist: {project_id}")

    allowed = [project_type.value for project_type in PROVIDER_PROJECT_TYPES[webhook_type]]
    if project.type not in allowed:
        raise NotFoundError(f"Wrong project type: {project.type}")

    return project

def media_type(content_type: Optional[str]) -> str:
    return (content_type or "").split(";")[0].strip().lower()

async def read_form_payload(request: Request) -> Optional[str]:
    form = await request.form()
    return form.get("payload") or request.query_params.get("payload")

def decode_payload(payload_json: Optional[str]) -> Dict[str, Any]:
    try:
        payload = json.loads(payload_json or "")
    except ValueError:
        raise InvalidPayloadError("Invalid JSON payload")
    if not isinstance(payload, dict):
        raise InvalidPayloadError("Invalid JSON payload")
    return payload

async def normalize_safely(normalize: Callable, *args) -> Tuple[Any, Optional[Dict[str, Any]]]:
    """
    Run a normalizer, turning a malformed payload into a failed response.
    Transport and credential errors propagate to the exception handlers.
    """
    try:
        result = normalize(*args)
        if inspect.isawaitable(result):
            result = await result
    except (KeyError, TypeError, ValueError, IndexError) as e:
        logger.warning(f"Malformed webhook payload: {e!r}")
        return None, {"status": "failed", "error": f"Invalid payload: {e!r}"}
    return result, None

async def answer(project: Project, normalize: Callable, args: tuple, trigger: BuildTrigger) -> Dict[str, Any]:
    normalized, failure = await normalize_safely(normalize, *args)
    if failure:
        return failure

    if isinstance(normalized, Ignored):
        logger.info(f"Webhook for project {project.id} ignored: {normalized.reason}")
        response = {"status": "ignored"}
        if normalized.reason:
            response["message"] = normalized.reason
        return response

    return await trigger.trigger_all(project, normalized)

async def generic_webhook(
    webhook_type: WebhookType,
    project_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    projects: ProjectStore,
    trigger: BuildTrigger,
    auditor: WebhookAuditor,
) -> Dict[str, Any]:
    project = await fetch_project(project_id, webhook_type, projects)

    params = dict(request.query_params)
    if media_type(request.headers.get("content-type")) == FORM_CONTENT_TYPE:
        params.update(dict(await request.form()))

    payload = generic_payload(params, project)
    background_tasks.add_task(
        auditor.log_webhook_request, project.id, webhook_type, json.dumps(payload)
    )

    return await answer(project, normalize_generic, (payload, webhook_type), trigger)

@router.post("/git/{project_id}")
async def git_webhook(
    project_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    projects: ProjectStore = Depends(get_project_store),
    trigger: BuildTrigger = Depends(get_build_trigger),
    auditor: WebhookAuditor = Depends(get_auditor),
):
    """Called by POSTing to /webhook/git/<project_id>?branch=<branch>&commit=<commit>"""
    return await generic_webhook(
        WebhookType.GIT, project_id, request, background_tasks, projects, trigger, auditor
    )

@router.post("/hg/{project_id}")
async def hg_webhook(
    project_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    projects: ProjectStore = Depends(get_project_store),
    trigger: BuildTrigger = Depends(get_build_trigger),
    auditor: WebhookAuditor = Depends(get_auditor),
):
    return await generic_webhook(
        WebhookType.HG, project_id, request, background_tasks, projects, trigger, auditor
    )

@router.post("/svn/{project_id}")
async def svn_webhook(
    project_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    projects: ProjectStore = Depends(get_project_store),
    trigger: BuildTrigger = Depends(get_build_trigger),
    auditor: WebhookAuditor = Depends(get_auditor),
):
    return await generic_webhook(
        WebhookType.SVN, project_id, request, background_tasks, projects, trigger, auditor
    )

@router.post("/github/{project_id}")
async def github_webhook(
    project_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    x_hub_signature_256: Optional[str] = Header(None),
    x_github_event: Optional[str] = Header(None),
    projects: ProjectStore = Depends(get_project_store),
    trigger: BuildTrigger = Depends(get_build_trigger),
    auditor: WebhookAuditor = Depends(get_auditor),
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    """
    Receive GitHub webhook events.
    """
    project = await fetch_project(project_id, WebhookType.GITHUB, projects)

    # Get raw body for signature verification
    body = await request.body()
    if x_hub_signature_256:
        if not verify_signature(body, x_hub_signature_256, settings.github_webhook_secret):
            raise ForbiddenError("Invalid signature")

    content_type = media_type(request.headers.get("content-type"))
    if content_type == JSON_CONTENT_TYPE:
        payload_json = body.decode("utf-8")
    elif content_type == FORM_CONTENT_TYPE:
        payload_json = await read_form_payload(request)
    else:
        return {"status": "failed", "error": "Content type not supported."}

    if x_github_event == "ping":
        return {"status": "ok", "message": "Webhook configured successfully"}

    background_tasks.add_task(
        auditor.log_webhook_request, project.id, WebhookType.GITHUB, payload_json
    )
    payload = decode_payload(payload_json)

    return await answer(project, normalize_github, (payload, client, settings), trigger)

@router.post("/gitlab/{project_id}")
async def gitlab_webhook(
    project_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    projects: ProjectStore = Depends(get_project_store),
    trigger: BuildTrigger = Depends(get_build_trigger),
    auditor: WebhookAuditor = Depends(get_auditor),
):
    project = await fetch_project(project_id, WebhookType.GITLAB, projects)

    payload_json = (await request.body()).decode("utf-8")
    background_tasks.add_task(
        auditor.log_webhook_request, project.id, WebhookType.GITLAB, payload_json
    )
    payload = decode_payload(payload_json)

    return await answer(project, normalize_gitlab, (payload,), trigger)

@router.post("/bitbucket/{project_id}")
async def bitbucket_webhook(
    project_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    x_event_key: Optional[str] = Header(None),
    projects: ProjectStore = Depends(get_project_store),
    trigger: BuildTrigger = Depends(get_build_trigger),
    auditor: WebhookAuditor = Depends(get_auditor),
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    project = await fetch_project(project_id, WebhookType.BITBUCKET, projects)

    # Old services send a `payload` parameter, new webhooks a JSON body
    if media_type(request.headers.get("content-type")) == FORM_CONTENT_TYPE:
        payload_json = await read_form_payload(request)
    else:
        payload_json = request.query_params.get("payload")

    if payload_json:
        background_tasks.add_task(
            auditor.log_webhook_request, project.id, WebhookType.BITBUCKET, payload_json
        )
        payload = decode_payload(payload_json)
        return await answer(project, normalize_service, (payload,), trigger)

    payload_json = (await request.body()).decode("utf-8")
    background_tasks.add_task(
        auditor.log_webhook_request, project.id, WebhookType.BITBUCKET, payload_json
    )
    payload = decode_payload(payload_json)

    return await answer(
        project, normalize_bitbucket, (payload, x_event_key, client, settings), trigger
    )

@router.post("/gogs/{project_id}")
async def gogs_webhook(
    project_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    projects: ProjectStore = Depends(get_project_store),
    environments: EnvironmentStore = Depends(get_environment_store),
    build_service: BuildService = Depends(get_build_service),
    trigger: BuildTrigger = Depends(get_build_trigger),
    auditor: WebhookAuditor = Depends(get_auditor),
):
    project = await fetch_project(project_id, WebhookType.GOGS, projects)

    if media_type(request.headers.get("content-type")) == FORM_CONTENT_TYPE:
        payload_json = await read_form_payload(request)
    else:
        payload_json = (await request.body()).decode("utf-8")

    background_tasks.add_task(
        auditor.log_webhook_request, project.id, WebhookType.GOGS, payload_json
    )
    payload = decode_payload(payload_json)

    if "commits" in payload:
        return await answer(project, normalize_gogs, (payload,), trigger)

    if "pull_request" in payload:
        try:
            return await sync_pull_request_environments(project, payload, environments, build_service)
        except (KeyError, TypeError) as e:
            return {"status": "failed", "error": f"Invalid payload: {e!r}"}

    return {"status": "ignored", "message": "Unusable payload."}
