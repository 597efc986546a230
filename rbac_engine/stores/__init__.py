"""
Role store backends.

Available stores:
- memory: In-memory (default)
- file: JSON document (RBAC_ROLES_FILE)
- database: SQLAlchemy async (RBAC_DATABASE_URL)

CachedRoleStore wraps any of them with a TTL cache.
"""

from .memory import MemoryRoleStore
from .file import FileRoleStore
from .database import DatabaseRoleStore
from .cached import CachedRoleStore

__all__ = [
    "MemoryRoleStore",
    "FileRoleStore",
    "DatabaseRoleStore",
    "CachedRoleStore",
]
