"""
File-backed role store.

Loads role definitions from a JSON document validated by RoleDocument.
The file is read once at construction; call reload() after editing it.
"""

from pathlib import Path

import structlog

from ..exceptions import NotFoundError
from ..interfaces import Role, RoleStore
from ..registry import AuthRegistry
from ..schemas import RoleDocument

logger = structlog.get_logger()


@AuthRegistry.role_store("file")
class FileRoleStore(RoleStore):
    """
    Read-only role store over a JSON file.

    Usage:
        store = FileRoleStore("roles.json")
        role = await store.get_role("editor")

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If the document is malformed
    """

    def __init__(self, path: str | Path | None = None, **kwargs):
        if path is None:
            raise ValueError("FileRoleStore requires a path (RBAC_ROLES_FILE)")
        self.path = Path(path)
        self._roles: dict[str, Role] = {}
        self.reload()

    def reload(self) -> None:
        """Re-read the file, replacing all roles at once."""
        document = RoleDocument.model_validate_json(self.path.read_text(encoding="utf-8"))
        self._roles = {definition.id: definition.to_role() for definition in document.roles}
        logger.info("Roles loaded", path=str(self.path), roles=len(self._roles))

    async def get_role(self, role_id: str) -> Role:
        role = self._roles.get(role_id)
        if role is None:
            raise NotFoundError(role_id)
        return role

    async def list_roles(self) -> list[Role]:
        return list(self._roles.values())
