"""
Database models for controller (sync version).
"""

from sqlalchemy import Boolean, Column, String, DateTime, ForeignKey, Integer, Text, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

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

class Environment(Base):
    __tablename__ = "environments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    name = Column(String(255), nullable=False)
    branches = Column(JSONType, nullable=False, default=list)

class Build(Base):
    __tablename__ = "builds"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    environment_id = Column(Integer, ForeignKey("environments.id"))
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
    dedup_key = Column(String(600), unique=True)
    create_date = Column(DateTime, server_default=func.now())
    start_date = Column(DateTime)
    finish_date = Column(DateTime)
