"""
Pytest fixtures for testing.

Provides:
- Role stores preloaded with a small blog hierarchy
- Authorization service wired to them
- Async SQLite role store with fresh tables per test
- Call-counting test doubles
"""

import asyncio
from typing import Any, AsyncGenerator
from dataclasses import dataclass

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from rbac_engine import AuthorizationService, Identity, Role, RoleStore
from rbac_engine.models import Base
from rbac_engine.stores import MemoryRoleStore, DatabaseRoleStore


# Test database URL (SQLite in-memory for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


BLOG_ROLES = [
    Role("viewer", {"post.view", "comment.view"}),
    Role("commenter", {"comment.create"}, parents={"viewer"}),
    Role("editor", {"post.edit"}, parents={"viewer"}),
    Role("moderator", {"comment.delete"}, parents={"commenter", "editor"}),
    Role("admin", {"post.delete", "user.manage"}, parents={"moderator"}),
]


# ============ Role Stores ============


class CountingRoleStore(RoleStore):
    """Wraps a store and counts get_role calls per role id."""

    def __init__(self, store: RoleStore):
        self.store = store
        self.calls: dict[str, int] = {}

    async def get_role(self, role_id: str) -> Role:
        self.calls[role_id] = self.calls.get(role_id, 0) + 1
        return await self.store.get_role(role_id)

    async def list_roles(self) -> list[Role]:
        return await self.store.list_roles()

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


@pytest.fixture
def role_store() -> MemoryRoleStore:
    """Memory store with the blog hierarchy."""
    return MemoryRoleStore(BLOG_ROLES)


@pytest.fixture
def counting_store(role_store: MemoryRoleStore) -> CountingRoleStore:
    return CountingRoleStore(role_store)


class GatedRoleStore(RoleStore):
    """Reads the role, then parks until released, to overlap a read with a change."""

    def __init__(self, store: RoleStore):
        self.store = store
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def get_role(self, role_id: str) -> Role:
        role = await self.store.get_role(role_id)
        self.entered.set()
        await self.release.wait()
        return role

    async def list_roles(self) -> list[Role]:
        return await self.store.list_roles()


@pytest.fixture
def gated_store(role_store: MemoryRoleStore) -> GatedRoleStore:
    return GatedRoleStore(role_store)


@pytest.fixture
def cyclic_store() -> MemoryRoleStore:
    """A -> B -> A, plus an innocent role C."""
    return MemoryRoleStore([
        Role("a", {"x.read"}, parents={"b"}),
        Role("b", {"x.write"}, parents={"a"}),
        Role("c", {"x.list"}),
    ])


@pytest.fixture
def auth(role_store: MemoryRoleStore) -> AuthorizationService:
    return AuthorizationService(role_store)


# ============ Identities ============


@pytest.fixture
def editor() -> Identity:
    return Identity(id=1, roles={"editor"}, attributes={"organization_id": "acme"})


@pytest.fixture
def viewer() -> Identity:
    return Identity(id=2, roles={"viewer"})


@dataclass
class Post:
    """Minimal resource for assertion tests."""
    id: int
    created_by_id: Any = None
    organization_id: Any = None
    status: str = "draft"


@pytest.fixture
def post_factory() -> type[Post]:
    """Factory for Post resources."""
    return Post


# ============ Test Doubles ============


class CountingAssertion:
    """Assertion double recording every call."""

    def __init__(self, result: bool = True):
        self.result = result
        self.calls: list[tuple[Any, Any]] = []

    def __call__(self, identity: Any, context: Any) -> bool:
        self.calls.append((identity, context))
        return self.result

    @property
    def call_count(self) -> int:
        return len(self.calls)


@pytest.fixture
def allow_assertion() -> CountingAssertion:
    return CountingAssertion(result=True)


@pytest.fixture
def deny_assertion() -> CountingAssertion:
    return CountingAssertion(result=False)


# ============ Database ============


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_store(db_engine) -> AsyncGenerator[DatabaseRoleStore, None]:
    """Database role store sharing the test engine."""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    yield DatabaseRoleStore(session_factory=session_factory)
