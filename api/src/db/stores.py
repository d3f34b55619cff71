"""
Stores wrap an AsyncSession and hide queries from the services.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.src.models.build import Build, Environment, Project, WebhookRequest
from api.src.errors import BuildConflictError

class Store:
    """Generic persistence operations for one model."""

    model = None

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, entity_id: int):
        return await self.session.get(self.model, entity_id)

    async def get_where(
        self,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        order_by: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Query by column equality.
        `order_by` maps column names to "ASC" or "DESC".
        Returns {"items": [...], "count": total matching rows}.
        """
        conditions = []
        for column, value in (filters or {}).items():
            attribute = getattr(self.model, column)
            conditions.append(attribute.is_(None) if value is None else attribute == value)

        count_query = select(func.count()).select_from(self.model).where(*conditions)
        count = (await self.session.execute(count_query)).scalar_one()

        query = select(self.model).where(*conditions)
        for column, direction in (order_by or {}).items():
            attribute = getattr(self.model, column)
            query = query.order_by(attribute.desc() if direction.upper() == "DESC" else attribute.asc())
        if limit:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)

        result = await self.session.execute(query)
        return {"items": list(result.scalars().all()), "count": count}

    async def save(self, entity):
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def delete(self, entity) -> bool:
        await self.session.delete(entity)
        await self.session.commit()
        return True

class ProjectStore(Store):
    model = Project

class EnvironmentStore(Store):
    model = Environment

    async def get_by_name_and_project_id(self, name: Optional[str], project_id: int) -> Optional[Environment]:
        if not name:
            return None

        query = select(Environment).where(
            Environment.name == name,
            Environment.project_id == project_id,
        )
        result = await self.session.execute(query)
        return result.scalars().first()

class BuildStore(Store):
    model = Build

    async def save(self, entity: Build) -> Build:
        try:
            return await super().save(entity)
        except IntegrityError as e:
            await self.session.rollback()
            raise BuildConflictError(
                f"Build for commit {entity.commit_id} already exists"
            ) from e

    async def get_by_project_and_commit(self, project_id: int, commit_id: str) -> Dict[str, Any]:
        return await self.get_where(
            {"project_id": project_id, "commit_id": commit_id},
            order_by={"id": "ASC"},
        )

    async def get_by_dedup_key(self, dedup_key: str) -> Optional[Build]:
        result = await self.session.execute(select(Build).where(Build.dedup_key == dedup_key))
        return result.scalars().first()

    async def get_latest_builds(self, project_id: int, limit: int = 5) -> List[Build]:
        result = await self.get_where(
            {"project_id": project_id},
            limit=limit,
            order_by={"id": "DESC"},
        )
        return result["items"]

    async def get_last_build_by_status(self, project_id: int, status: str) -> Optional[Build]:
        result = await self.get_where(
            {"project_id": project_id, "status": status},
            limit=1,
            order_by={"id": "DESC"},
        )
        return result["items"][0] if result["items"] else None

    async def count_by_status(self) -> Dict[str, int]:
        result = await self.session.execute(
            select(Build.status, func.count(Build.id)).group_by(Build.status)
        )
        return {str(status): count for status, count in result.all()}

class WebhookRequestStore(Store):
    model = WebhookRequest
