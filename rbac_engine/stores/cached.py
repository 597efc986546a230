"""
TTL caching wrapper for role stores.

Keeps recently read Role objects in memory so repeated authorization
requests do not hit the backing store. Misses are never cached: a role
created after a NotFoundError becomes visible on the next lookup.
"""

from ..cache import TTLCache
from ..interfaces import Role, RoleStore


class CachedRoleStore(RoleStore):
    """
    Role store decorator with per-role TTL caching.

    Usage:
        store = CachedRoleStore(DatabaseRoleStore(...), ttl=60)

    Configuration:
        ttl: Seconds a role stays cached (default: 60)
    """

    def __init__(self, store: RoleStore, ttl: int = 60):
        self.store = store
        self.cache: TTLCache[str, Role] = TTLCache(ttl=ttl, name="roles")

    async def get_role(self, role_id: str) -> Role:
        role = self.cache.get(role_id)
        if role is not None:
            return role

        generation = self.cache.generation
        role = await self.store.get_role(role_id)
        self.cache.set(role_id, role, generation=generation)
        return role

    async def list_roles(self) -> list[Role]:
        generation = self.cache.generation
        roles = await self.store.list_roles()
        for role in roles:
            if not self.cache.set(role.id, role, generation=generation):
                break
        return roles

    def invalidate(self, role_id: str | None = None) -> None:
        """Forget one cached role, or all of them."""
        if role_id is None:
            self.cache.clear()
        else:
            self.cache.delete(role_id)
