from pydantic import BaseModel
from typing import Any, Dict, Optional
from datetime import datetime

class BuildResponse(BaseModel):
    id: int
    project_id: int
    environment_id: Optional[int] = None
    parent_build_id: Optional[int] = None
    commit_id: str
    branch: str
    tag: Optional[str] = None
    committer_email: Optional[str] = None
    commit_message: Optional[str] = None
    source: str
    status: str
    extra: Dict[str, Any] = {}
    meta: Dict[str, Any] = {}
    create_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    finish_date: Optional[datetime] = None

    class Config:
        from_attributes = True

class BuildLogResponse(BaseModel):
    id: int
    status: str
    log: Optional[str] = None

    class Config:
        from_attributes = True
