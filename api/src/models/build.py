from sqlalchemy import Boolean, Column, String, DateTime, ForeignKey, Integer, Text, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from api.src.db.database import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")

class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False)
    reference = Column(String(500), nullable=False, default="")
    default_branch = Column(String(255), nullable=False, default="main")
    default_branch_only = Column(Boolean, nullable=False, default=False)
    archived = Column(Boolean, nullable=False, default=False)
    build_config = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    environments = relationship(
        "Environment",
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Environment.id",
    )

    def get_environment_ids_by_branch(self, branch: str) -> list:
        """Environments built for a branch. The default branch feeds them all."""
        is_default = branch == self.default_branch
        return [
            environment.id
            for environment in self.environments
            if is_default or branch in (environment.branches or [])
        ]

class Environment(Base):
    __tablename__ = "environments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    branches = Column(JSONType, nullable=False, default=list)

    project = relationship("Project", back_populates="environments")

class Build(Base):
    __tablename__ = "builds"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    environment_id = Column(Integer, ForeignKey("environments.id", ondelete="SET NULL"))
    parent_build_id = Column(Integer)
    commit_id = Column(String(50), nullable=False, default="")
    branch = Column(String(255), nullable=False)
    tag = Column(String(255))
    committer_email = Column(String(512))
    commit_message = Column(Text)
    source = Column(String(50), nullable=False)
    status = Column(String(50), nullable=False, default="pending")
    extra = Column(JSONType, nullable=False, default=dict)
    meta = Column(JSONType, nullable=False, default=dict)
    log = Column(Text)
    # project:commit:environment:tag, NULL for builds that are never deduplicated
    dedup_key = Column(String(600), unique=True)
    create_date = Column(DateTime, server_default=func.now())
    start_date = Column(DateTime)
    finish_date = Column(DateTime)

class WebhookRequest(Base):
    __tablename__ = "webhook_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    webhook_type = Column(String(50), nullable=False)
    payload = Column(Text)
    create_date = Column(DateTime, server_default=func.now())
