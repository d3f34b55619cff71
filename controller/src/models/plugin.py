"""
Build pipeline models.
"""

from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from enum import Enum

class BuildStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"

class Stage(str, Enum):
    SETUP = "setup"
    TEST = "test"
    DEPLOY = "deploy"
    COMPLETE = "complete"
    SUCCESS = "success"
    FAILURE = "failure"

class PluginSpec(BaseModel):
    name: str
    stage: Stage
    options: Dict[str, Any] = {}

    @property
    def allow_failures(self) -> bool:
        return bool(self.options.get("allow_failures", False))

class PluginOutcome(BaseModel):
    name: str
    stage: Stage
    success: bool
    meta: Dict[str, Any] = {}
    error: Optional[str] = None

class BuildConfig(BaseModel):
    settings: Dict[str, Any] = {}
    stages: Dict[Stage, List[PluginSpec]] = {}

    def plugins_for(self, stage: Stage) -> List[PluginSpec]:
        return self.stages.get(stage, [])

class BuildJob(BaseModel):
    build_id: int
    project_id: Optional[int] = None
    queued_at: Optional[str] = None
