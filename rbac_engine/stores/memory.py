"""
In-memory role store.

For development and testing. Data is lost on restart.
"""

from typing import Iterable

from ..exceptions import NotFoundError
from ..interfaces import Role, RoleStore
from ..registry import AuthRegistry


@AuthRegistry.role_store("memory")
class MemoryRoleStore(RoleStore):
    """
    In-memory role storage.

    Useful for:
    - Unit testing
    - Bootstrapping roles defined in code
    - Quick prototyping
    """

    def __init__(self, roles: Iterable[Role] = (), **kwargs):
        self._roles: dict[str, Role] = {}
        for role in roles:
            self.add_role(role)

    async def get_role(self, role_id: str) -> Role:
        """Get a role by id."""
        role = self._roles.get(role_id)
        if role is None:
            raise NotFoundError(role_id)
        return role

    async def list_roles(self) -> list[Role]:
        """List all roles."""
        return list(self._roles.values())

    def add_role(self, role: Role) -> Role:
        """Add or replace a role."""
        self._roles[role.id] = role
        return role

    def remove_role(self, role_id: str) -> bool:
        """Remove a role."""
        return self._roles.pop(role_id, None) is not None
