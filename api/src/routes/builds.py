from fastapi import APIRouter, Depends, HTTPException
from typing import List, Optional

from api.src.db.stores import BuildStore, ProjectStore
from api.src.dependencies import get_build_queue, get_build_store, get_project_store
from api.src.models.enums import BuildStatus
from api.src.models.schemas import BuildLogResponse, BuildResponse
from api.src.services.queue import BuildQueue

router = APIRouter(tags=["builds"])

async def get_project_or_404(project_id: int, projects: ProjectStore):
    project = await projects.get_by_id(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project

@router.get("/builds/{build_id}", response_model=BuildResponse)
async def get_build(build_id: int, builds: BuildStore = Depends(get_build_store)):
    """Get a specific build."""
    build = await builds.get_by_id(build_id)
    if not build:
        raise HTTPException(status_code=404, detail="Build not found")
    return build

@router.get("/builds/{build_id}/log", response_model=BuildLogResponse)
async def get_build_log(build_id: int, builds: BuildStore = Depends(get_build_store)):
    build = await builds.get_by_id(build_id)
    if not build:
        raise HTTPException(status_code=404, detail="Build not found")
    return build

@router.get("/builds/{build_id}/status")
async def get_build_status(
    build_id: int,
    builds: BuildStore = Depends(get_build_store),
    queue: BuildQueue = Depends(get_build_queue),
):
    """Get real-time status of a build."""
    build = await builds.get_by_id(build_id)
    if not build:
        raise HTTPException(status_code=404, detail="Build not found")

    # Get live status from Redis
    live_status = await queue.get_build_status(build_id)

    return {
        "build_id": build_id,
        "db_status": build.status,
        "live_status": live_status,
    }

@router.get("/projects/{project_id}/builds")
async def list_project_builds(
    project_id: int,
    limit: int = 20,
    offset: int = 0,
    status: Optional[BuildStatus] = None,
    builds: BuildStore = Depends(get_build_store),
    projects: ProjectStore = Depends(get_project_store),
):
    """List builds of a project, newest first."""
    await get_project_or_404(project_id, projects)

    filters = {"project_id": project_id}
    if status:
        filters["status"] = status.value

    result = await builds.get_where(filters, limit=limit, offset=offset, order_by={"id": "DESC"})
    return {
        "items": [BuildResponse.model_validate(build) for build in result["items"]],
        "count": result["count"],
    }

@router.get("/projects/{project_id}/builds/latest", response_model=List[BuildResponse])
async def latest_project_builds(
    project_id: int,
    limit: int = 5,
    builds: BuildStore = Depends(get_build_store),
    projects: ProjectStore = Depends(get_project_store),
):
    await get_project_or_404(project_id, projects)
    return await builds.get_latest_builds(project_id, limit)

@router.get("/projects/{project_id}/builds/last", response_model=BuildResponse)
async def last_project_build(
    project_id: int,
    status: BuildStatus = BuildStatus.SUCCESS,
    builds: BuildStore = Depends(get_build_store),
    projects: ProjectStore = Depends(get_project_store),
):
    """Last build of a project with the given status."""
    await get_project_or_404(project_id, projects)

    build = await builds.get_last_build_by_status(project_id, status.value)
    if not build:
        raise HTTPException(status_code=404, detail=f"No {status.value} build found")
    return build
