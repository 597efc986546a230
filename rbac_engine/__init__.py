"""
rbac-engine - Role-based authorization with hierarchies and assertions.

Decides whether an identity holds a permission, optionally narrowed by a
contextual assertion. Transport, routing and DI stay with the caller.

Usage Levels:
=============

Level 1: Plain permission check
-------------------------------
    from rbac_engine import AuthorizationService, Identity, Role
    from rbac_engine.stores import MemoryRoleStore

    auth = AuthorizationService(MemoryRoleStore([
        Role("viewer", {"post.view"}),
        Role("editor", {"post.edit"}, parents={"viewer"}),
    ]))
    user = Identity(id=7, roles={"editor"})

    await auth.is_granted(user, "post.view")    # True (inherited)
    await auth.is_granted(user, "post.delete")  # False

Level 2: Assertions
-------------------
    from rbac_engine.assertions import IsOwner

    await auth.is_granted(user, "post.edit", IsOwner(), post)
    await auth.is_granted(user, "post.edit", lambda u, p: p.author_id == u.id, post)

Level 3: Explained decisions and guards
---------------------------------------
    decision = await auth.authorize(user, "post.delete")
    decision.reason   # "Missing permission: post.delete"

    await auth.require(user, "post.delete")  # raises AccessDeniedError

Configuration:
==============

Environment variables (or .env):
- RBAC_ROLE_STORE: "memory" (default), "file", "database"
- RBAC_ROLES_FILE / RBAC_DATABASE_URL: backend location
- RBAC_CACHE_TTL: resolved permission cache TTL (default 300)
- RBAC_WILDCARD_PERMISSIONS: false (default), true

    auth = await build_authorization_service()

Errors:
=======
- NotFoundError: identity references an unknown role
- CyclicRoleHierarchyError: parent-role graph loops
Denial is never an error.
"""

from .interfaces import (
    Role,
    Identity,
    Assertion,
    AuthorizationQuery,
    PolicyDecision,
    RoleStore,
    identity_roles,
)
from .exceptions import (
    RBACError,
    NotFoundError,
    CyclicRoleHierarchyError,
    AccessDeniedError,
)
from .registry import AuthRegistry
from .checker import PermissionChecker, WildcardPermissionChecker
from .resolver import RoleResolver
from .assertions import AssertionEngine
from .service import AuthorizationService
from .factory import build_authorization_service

__all__ = [
    # Types
    "Role",
    "Identity",
    "Assertion",
    "AuthorizationQuery",
    "PolicyDecision",
    "RoleStore",
    "identity_roles",
    # Errors
    "RBACError",
    "NotFoundError",
    "CyclicRoleHierarchyError",
    "AccessDeniedError",
    # Components
    "AuthRegistry",
    "PermissionChecker",
    "WildcardPermissionChecker",
    "RoleResolver",
    "AssertionEngine",
    "AuthorizationService",
    "build_authorization_service",
]
