"""
Database role store (SQLAlchemy async).

Usage:
    store = DatabaseRoleStore(database_url="postgresql+asyncpg://...")
    await store.create_all()
    await store.save_role(Role("viewer", {"post.view"}))
    role = await store.get_role("viewer")

Or share an application's session factory:
    store = DatabaseRoleStore(session_factory=async_session_factory)
"""

from typing import Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..exceptions import NotFoundError
from ..interfaces import Role, RoleStore
from ..models import Base, PermissionRecord, RoleParent, RoleRecord
from ..registry import AuthRegistry

logger = structlog.get_logger()


@AuthRegistry.role_store("database")
class DatabaseRoleStore(RoleStore):
    """
    Role storage backed by the roles/permissions tables.

    Each read opens its own short session, so one store instance can serve
    concurrent requests.

    Configuration:
        database_url: Async SQLAlchemy URL (ignored if session_factory given)
        session_factory: Existing async_sessionmaker to reuse
        echo: Echo SQL queries
    """

    def __init__(
        self,
        database_url: str | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        echo: bool = False,
        **kwargs,
    ):
        self.engine: AsyncEngine | None = None
        if session_factory is None:
            if database_url is None:
                raise ValueError("DatabaseRoleStore requires database_url or session_factory")
            self.engine = create_async_engine(database_url, echo=echo)
            session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        self.session_factory = session_factory

    # ============================================================
    # READ CONTRACT
    # ============================================================

    async def get_role(self, role_id: str) -> Role:
        """Get role by id."""
        async with self.session_factory() as db:
            record = await db.get(RoleRecord, role_id)
            if record is None:
                raise NotFoundError(role_id)
            return record.to_role()

    async def get_roles(self, role_ids: Sequence[str]) -> list[Role]:
        """Get several roles in one query, keeping input order."""
        if not role_ids:
            return []

        async with self.session_factory() as db:
            result = await db.execute(select(RoleRecord).where(RoleRecord.id.in_(set(role_ids))))
            found = {record.id: record.to_role() for record in result.scalars().all()}

        roles: list[Role] = []
        for role_id in role_ids:
            role = found.get(role_id)
            if role is None:
                logger.warning("Role not found", role_id=role_id, store=type(self).__name__)
                continue
            roles.append(role)
        return roles

    async def list_roles(self) -> list[Role]:
        """List all roles."""
        async with self.session_factory() as db:
            result = await db.execute(select(RoleRecord).order_by(RoleRecord.id))
            return [record.to_role() for record in result.scalars().all()]

    # ============================================================
    # MANAGEMENT
    # ============================================================

    async def save_role(self, role: Role) -> Role:
        """
        Create or replace a role definition.

        Replaces the stored permission set and parent links with the
        role's own. Callers holding a resolver cache should invalidate it.
        """
        async with self.session_factory() as db:
            record = await db.get(RoleRecord, role.id)
            if record is None:
                record = RoleRecord(id=role.id, permissions=[], parent_links=[])
                db.add(record)
            record.description = role.description

            record.permissions = [
                await self._get_or_create_permission(db, name)
                for name in sorted(role.permissions)
            ]
            existing = {link.parent_id: link for link in record.parent_links}
            record.parent_links = [
                existing.get(parent_id) or RoleParent(role_id=role.id, parent_id=parent_id)
                for parent_id in sorted(role.parents)
            ]

            await db.commit()

        logger.info(
            "Role saved",
            role_id=role.id,
            permissions=len(role.permissions),
            parents=sorted(role.parents),
        )
        return role

    async def delete_role(self, role_id: str) -> bool:
        """Delete a role. Links naming it as parent are left for validate() to report."""
        async with self.session_factory() as db:
            record = await db.get(RoleRecord, role_id)
            if record is None:
                return False
            await db.delete(record)
            await db.commit()
        return True

    async def _get_or_create_permission(self, db: AsyncSession, name: str) -> PermissionRecord:
        permission = await db.get(PermissionRecord, name)
        if permission is None:
            permission = PermissionRecord(name=name)
            db.add(permission)
        return permission

    # ============================================================
    # LIFECYCLE
    # ============================================================

    async def create_all(self) -> None:
        """Create the tables (development/testing; use migrations in production)."""
        if self.engine is None:
            raise RuntimeError("create_all() needs a store that owns its engine")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Dispose of the engine if this store created it."""
        if self.engine is not None:
            await self.engine.dispose()
