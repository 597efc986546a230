"""
Authorization interfaces - Core abstractions.

These define the value types and contracts every implementation follows.
The resolver, checker and service depend ONLY on these, never on a
concrete role store.

Types:
- Role: Named bundle of permissions with optional parent roles
- Identity: The principal being checked, carrying assigned role ids
- AuthorizationQuery: One is_granted request (permission, assertion, context)
- PolicyDecision: Boolean outcome plus a human-readable reason

Contracts:
- RoleStore: Read access to role definitions
- Assertion: Contextual predicate evaluated after a positive grant
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Sequence, Union

import structlog

from .exceptions import CyclicRoleHierarchyError, NotFoundError

logger = structlog.get_logger()


# ============================================================
# ROLE
# ============================================================

@dataclass(frozen=True)
class Role:
    """
    Role definition.

    Immutable once constructed. Any iterable passed for ``permissions`` or
    ``parents`` is normalised to a frozenset.

    Attributes:
        id: Unique role identifier (e.g., "editor")
        permissions: Permission identifiers granted directly (e.g., "post.edit")
        parents: Identifiers of roles this role inherits from
        description: Optional human-readable description
    """
    id: str
    permissions: frozenset[str] = frozenset()
    parents: frozenset[str] = frozenset()
    description: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Role id must be a non-empty string")
        object.__setattr__(self, "permissions", frozenset(self.permissions))
        object.__setattr__(self, "parents", frozenset(self.parents))
        if self.id in self.parents:
            # Smallest possible cycle; persisted rows can still contain one
            raise CyclicRoleHierarchyError([self.id, self.id])

    def __repr__(self) -> str:
        return f"<Role {self.id}>"


# ============================================================
# IDENTITY
# ============================================================

@dataclass(frozen=True)
class Identity:
    """
    The authenticated principal being checked.

    Supplied by the caller per request; the engine never mutates it.
    ``attributes`` holds anything assertions may need (tenant, department...).
    """
    id: Any
    roles: frozenset[str] = frozenset()
    attributes: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "roles", frozenset(self.roles))

    def __getattr__(self, name: str) -> Any:
        # Expose attributes the way ORM users expose columns (actor.organization_id)
        attributes = self.__dict__.get("attributes", {})
        if name in attributes:
            return attributes[name]
        raise AttributeError(name)


def identity_roles(actor: Any, roles_field: str = "roles") -> frozenset[str]:
    """
    Get the role ids assigned to an actor.

    Accepts an ``Identity`` or any object exposing ``roles_field``
    (a user model, a token payload wrapper...). Missing or ``None``
    means no roles.
    """
    if isinstance(actor, Identity):
        return actor.roles
    roles = getattr(actor, roles_field, None)
    if roles is None:
        return frozenset()
    if isinstance(roles, str):
        return frozenset([roles])
    return frozenset(roles)


# ============================================================
# ASSERTION
# ============================================================

class Assertion(ABC):
    """
    Contextual predicate narrowing a permission grant.

    Evaluated only after the base permission check succeeded.
    ``evaluate`` may be sync or async; the engine awaits awaitables.

    Examples:
        IsOwner - the identity authored the resource in context
        SameTenant - identity and resource share an organization
    """

    @abstractmethod
    def evaluate(self, identity: Any, context: Any) -> bool | Awaitable[bool]:
        """
        Evaluate the predicate.

        Args:
            identity: The principal being checked
            context: Caller-supplied value (often the resource)

        Returns:
            True to keep the grant, False to deny
        """
        pass

    def __call__(self, identity: Any, context: Any) -> bool | Awaitable[bool]:
        return self.evaluate(identity, context)


AssertionLike = Union[
    Assertion,
    Callable[[Any, Any], bool],
    Callable[[Any, Any], Awaitable[bool]],
]


# ============================================================
# QUERY AND DECISION
# ============================================================

@dataclass(frozen=True)
class AuthorizationQuery:
    """One is_granted request. Built per call and discarded afterwards."""
    permission: str
    assertion: AssertionLike | None = None
    context: Any = None


@dataclass
class PolicyDecision:
    """
    Result of a policy evaluation.

    Attributes:
        allowed: Whether the permission is granted
        reason: Human-readable explanation (for errors/logging)
        metadata: Additional data (matched permission, assertion used...)
    """
    allowed: bool
    reason: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def allow(cls, reason: str | None = None, **metadata: Any) -> "PolicyDecision":
        return cls(allowed=True, reason=reason, metadata=metadata)

    @classmethod
    def deny(cls, reason: str = "Permission denied", **metadata: Any) -> "PolicyDecision":
        return cls(allowed=False, reason=reason, metadata=metadata)

    def __bool__(self) -> bool:
        return self.allowed


# ============================================================
# ROLE STORE
# ============================================================

class RoleStore(ABC):
    """
    Abstract read access to role definitions.

    Implementations:
    - MemoryRoleStore: In-memory (dev/testing)
    - FileRoleStore: JSON document on disk
    - DatabaseRoleStore: SQLAlchemy async session
    - CachedRoleStore: TTL cache in front of any store
    """

    @abstractmethod
    async def get_role(self, role_id: str) -> Role:
        """
        Get a role by id.

        Raises:
            NotFoundError: If no role has this id
        """
        pass

    @abstractmethod
    async def list_roles(self) -> list[Role]:
        """List every role known to the store."""
        pass

    async def get_roles(self, role_ids: Sequence[str]) -> list[Role]:
        """
        Get several roles, in input order.

        Unknown ids are skipped with a warning rather than raised.
        """
        roles: list[Role] = []
        for role_id in role_ids:
            try:
                roles.append(await self.get_role(role_id))
            except NotFoundError:
                logger.warning("Role not found", role_id=role_id, store=type(self).__name__)
        return roles
