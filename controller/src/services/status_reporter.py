"""
Report build status, meta and logs to database.
"""

import logging
from datetime import datetime
from typing import Any, Optional, Tuple
from sqlalchemy import create_engine, update
from sqlalchemy.orm import sessionmaker

from controller.src.models.db import Build, Environment, Project

logger = logging.getLogger(__name__)

def create_session_factory(database_url: str) -> sessionmaker:
    """Sync database connection for controller."""
    engine = create_engine(database_url)
    return sessionmaker(bind=engine, expire_on_commit=False)

class BuildReporter:
    """Reads builds for execution and writes their progress back."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def load_build(self, build_id: int) -> Tuple[Optional[Build], Optional[Project], Optional[str]]:
        """Load a build with its project and environment name."""
        with self.session_factory() as session:
            build = session.get(Build, build_id)
            if build is None:
                return None, None, None

            project = session.get(Project, build.project_id)
            environment = None
            if build.environment_id:
                env = session.get(Environment, build.environment_id)
                environment = env.name if env else None

            session.expunge_all()
            return build, project, environment

    def update_build_status(
        self,
        build_id: int,
        status: str,
        started_at: Optional[datetime] = None,
        finished_at: Optional[datetime] = None,
    ):
        """Update build status in database."""
        with self.session_factory() as session:
            values = {"status": status}

            if started_at:
                values["start_date"] = started_at
            if finished_at:
                values["finish_date"] = finished_at

            session.execute(
                update(Build)
                .where(Build.id == build_id)
                .values(**values)
            )
            session.commit()
            logger.info(f"Updated build {build_id} status to {status}")

    def store_meta(self, build_id: int, key: str, value: Any):
        """Set one meta key, keeping every other key of the build."""
        with self.session_factory() as session:
            build = session.get(Build, build_id, with_for_update=True)
            if build is None:
                logger.warning(f"Cannot store meta {key}: build {build_id} not found")
                return

            meta = dict(build.meta or {})
            meta[key] = value
            build.meta = meta
            session.commit()
            logger.debug(f"Stored meta {key} for build {build_id}")

    def save_log(self, build_id: int, log: str):
        """Persist the build log."""
        with self.session_factory() as session:
            session.execute(
                update(Build)
                .where(Build.id == build_id)
                .values(log=log)
            )
            session.commit()
