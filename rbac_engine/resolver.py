"""
Role hierarchy resolution.

Turns the role ids assigned to an identity into the flattened set of
permissions they grant, following parent links.

Usage:
    resolver = RoleResolver(store)
    permissions = await resolver.resolve({"editor"})
    # frozenset({"post.edit", "post.view"})

    # Startup check for the whole store
    await resolver.validate()
"""

from dataclasses import dataclass
from typing import Iterable

import structlog

from .cache import TTLCache
from .exceptions import CyclicRoleHierarchyError, NotFoundError
from .interfaces import RoleStore

logger = structlog.get_logger()

CacheKey = tuple[str, ...]


def cache_key(role_ids: Iterable[str]) -> CacheKey:
    """Order-independent key for a role set."""
    return tuple(sorted(set(role_ids)))


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of one resolution.

    Attributes:
        permissions: Effective permission set
        roles: Every role expanded on the way (assigned roles and ancestors)
    """
    permissions: frozenset[str]
    roles: frozenset[str]


class RoleResolver:
    """
    Resolves role sets into effective permission sets.

    Depth-first over parent links. Each role is expanded at most once per
    resolution (diamond inheritance), and a role met again while it is still
    on the current expansion path is a cycle.

    Configuration:
        cache: Memo of resolutions keyed by sorted role ids (None = off)
    """

    def __init__(
        self,
        store: RoleStore,
        cache: TTLCache[CacheKey, Resolution] | None = None,
    ):
        self.store = store
        self.cache = cache

    async def resolve(self, role_ids: Iterable[str]) -> frozenset[str]:
        """
        Get the effective permissions of a role set.

        Args:
            role_ids: Directly assigned role ids

        Returns:
            Union of the roles' own and all ancestors' permissions

        Raises:
            NotFoundError: A role or ancestor is missing from the store
            CyclicRoleHierarchyError: The parent graph loops
        """
        resolution = await self.resolve_full(role_ids)
        return resolution.permissions

    async def resolve_full(self, role_ids: Iterable[str]) -> Resolution:
        """Like ``resolve`` but also reports which roles were expanded."""
        key = cache_key(role_ids)
        if not key:
            return Resolution(permissions=frozenset(), roles=frozenset())

        generation = None
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached
            generation = self.cache.generation

        permissions: set[str] = set()
        visited: set[str] = set()
        for role_id in key:
            await self._expand(role_id, visited, [], permissions)

        resolution = Resolution(permissions=frozenset(permissions), roles=frozenset(visited))
        if self.cache is not None:
            # Not stored if invalidate() ran while the store was being read
            self.cache.set(key, resolution, generation=generation)
        return resolution

    async def _expand(
        self,
        role_id: str,
        visited: set[str],
        path: list[str],
        permissions: set[str],
    ) -> None:
        if role_id in path:
            cycle = path[path.index(role_id):] + [role_id]
            logger.error("Cyclic role hierarchy", cycle=cycle)
            raise CyclicRoleHierarchyError(cycle)
        if role_id in visited:
            return

        role = await self.store.get_role(role_id)
        permissions.update(role.permissions)

        path.append(role_id)
        for parent_id in sorted(role.parents):
            await self._expand(parent_id, visited, path, permissions)
        path.pop()

        # Marked only once all ancestors are done, so a revisit through
        # a still-open path is reported as a cycle
        visited.add(role_id)

    def invalidate(self, role_ids: Iterable[str] | None = None) -> int:
        """
        Drop memoized permission sets.

        Args:
            role_ids: Drop every cached resolution that expanded any of
                these roles (directly or as an ancestor). None drops all.

        Returns:
            Number of entries removed
        """
        if self.cache is None:
            return 0
        if role_ids is None:
            return self.cache.clear()
        changed = frozenset(role_ids)
        return self.cache.delete_where(
            lambda key, resolution: not changed.isdisjoint(resolution.roles)
        )

    async def validate(self) -> None:
        """
        Check the store's whole hierarchy.

        Raises:
            NotFoundError: If a role names a parent that does not exist
            CyclicRoleHierarchyError: On the first cycle found
        """
        roles = await self.store.list_roles()
        known = {role.id for role in roles}
        for role in roles:
            for parent_id in sorted(role.parents):
                if parent_id not in known:
                    logger.error(
                        "Dangling parent role",
                        role_id=role.id,
                        parent_id=parent_id,
                    )
                    raise NotFoundError(parent_id)

        visited: set[str] = set()
        for role in sorted(roles, key=lambda r: r.id):
            await self._expand(role.id, visited, [], set())

        logger.info("Role hierarchy validated", roles=len(roles))
