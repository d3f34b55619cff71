"""Test configuration and fixtures."""

import logging
import os
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from controller.src.models.db import Base, Build, Project
from controller.src.plugins import BuildContext
from controller.src.services.build_logger import BuildLogger
from controller.src.services.interpolator import BuildInterpolator
from controller.src.services.status_reporter import BuildReporter

@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()

@pytest.fixture
def reporter(session_factory) -> BuildReporter:
    return BuildReporter(session_factory)

@pytest.fixture
def make_build(session_factory):
    """Factory persisting a project and a pending build of it."""

    def factory(build_config=None, **kwargs) -> Build:
        with session_factory() as session:
            project = Project(
                title="Test project",
                type="git",
                reference="https://example.com/repo.git",
                build_config=build_config,
            )
            session.add(project)
            session.flush()

            values = {
                "project_id": project.id,
                "commit_id": "c1a2b3c4d5e6",
                "branch": "main",
                "source": "webhook-push",
                "committer_email": "jane@example.com",
                "commit_message": "Fix tests",
            }
            values.update(kwargs)
            build = Build(**values)
            session.add(build)
            session.commit()
            return build

    return factory

@pytest.fixture
def build_path(tmp_path) -> str:
    path = tmp_path / "builds" / "1"
    path.mkdir(parents=True)
    return str(path) + os.sep

@pytest.fixture
def build_logger() -> BuildLogger:
    return BuildLogger(logging.getLogger("gantry.test"), 1)

@pytest.fixture
def context(build_path, build_logger) -> BuildContext:
    interpolator = BuildInterpolator({"BUILD_PATH": build_path, "COMMIT_ID": "commit_hash"})
    return BuildContext(
        build_path=build_path,
        interpolator=interpolator,
        build_logger=build_logger,
        timeout=30,
    )

@pytest.fixture
def build():
    return SimpleNamespace(id=1, commit_id="commit_hash")
