"""
Authorization service - Main facade for authorization.

This is the primary entry point for authorization checks.
Combines role resolution, permission checking and assertions.

Usage:
    auth = AuthorizationService(MemoryRoleStore([
        Role("viewer", {"post.view"}),
        Role("editor", {"post.edit"}, parents={"viewer"}),
    ]))

    user = Identity(id=42, roles={"editor"})
    await auth.is_granted(user, "post.view")                 # True
    await auth.is_granted(user, "post.edit", IsOwner(), post)  # depends on post
"""

from typing import Any, Sequence

import structlog

from .assertions.engine import AssertionEngine
from .cache import TTLCache
from .checker import PermissionChecker
from .exceptions import AccessDeniedError
from .interfaces import (
    AssertionLike,
    AuthorizationQuery,
    PolicyDecision,
    Role,
    RoleStore,
    identity_roles,
)
from .resolver import RoleResolver
from .stores.cached import CachedRoleStore

logger = structlog.get_logger()


class AuthorizationService:
    """
    Default authorization service implementation.

    Evaluation order:
    1. Resolve the identity's roles into effective permissions
    2. Check the requested permission against them
    3. Only if held, evaluate the assertion (if any)

    A denial is a normal False/deny decision. Misconfiguration
    (NotFoundError, CyclicRoleHierarchyError) and assertion errors raise.

    Configuration:
        cache_enabled: Memoize resolved permission sets (default: True)
        cache_ttl: Seconds before a memoized set expires (default: 300, 0 = never)
        roles_field: Attribute holding role ids on non-Identity actors
    """

    def __init__(
        self,
        role_store: RoleStore,
        checker: PermissionChecker | None = None,
        assertion_engine: AssertionEngine | None = None,
        resolver: RoleResolver | None = None,
        cache_enabled: bool = True,
        cache_ttl: int = 300,
        roles_field: str = "roles",
    ):
        self.role_store = role_store
        self.checker = checker or PermissionChecker()
        self.assertion_engine = assertion_engine or AssertionEngine()
        if resolver is None:
            cache = TTLCache(ttl=cache_ttl, name="permissions") if cache_enabled else None
            resolver = RoleResolver(role_store, cache=cache)
        self.resolver = resolver
        self.roles_field = roles_field

    async def is_granted(
        self,
        identity: Any,
        permission: str,
        assertion: AssertionLike | None = None,
        context: Any = None,
    ) -> bool:
        """
        Check if identity holds permission.

        Args:
            identity: Identity, or any object exposing role ids
            permission: Permission identifier (e.g., "post.edit")
            assertion: Optional predicate (identity, context) -> bool
            context: Value handed to the assertion (often the resource)

        Returns:
            True if granted, False otherwise

        Raises:
            NotFoundError: The identity references an unknown role
            CyclicRoleHierarchyError: The role hierarchy loops
        """
        decision = await self.authorize(identity, permission, assertion, context)
        return decision.allowed

    async def authorize(
        self,
        identity: Any,
        permission: str,
        assertion: AssertionLike | None = None,
        context: Any = None,
    ) -> PolicyDecision:
        """
        Same evaluation as is_granted, returning a PolicyDecision with a reason.
        """
        query = AuthorizationQuery(permission=permission, assertion=assertion, context=context)

        permissions = await self.get_permissions(identity)
        grant = self.checker.matching_grant(permissions, query.permission)
        if grant is None:
            logger.debug(
                "Permission denied",
                identity_id=getattr(identity, "id", None),
                permission=query.permission,
            )
            return PolicyDecision.deny(
                f"Missing permission: {query.permission}",
                permission=query.permission,
            )

        if query.assertion is None:
            return PolicyDecision.allow(
                f"Has permission: {grant}",
                permission=query.permission,
                grant=grant,
            )

        passed = await self.assertion_engine.evaluate(query.assertion, identity, query.context)
        assertion_name = _assertion_name(query.assertion)
        if not passed:
            logger.debug(
                "Assertion failed",
                identity_id=getattr(identity, "id", None),
                permission=query.permission,
                assertion=assertion_name,
            )
            return PolicyDecision.deny(
                f"Assertion '{assertion_name}' not met",
                permission=query.permission,
                grant=grant,
                assertion=assertion_name,
            )

        return PolicyDecision.allow(
            f"Has permission: {grant}",
            permission=query.permission,
            grant=grant,
            assertion=assertion_name,
        )

    async def require(
        self,
        identity: Any,
        permission: str,
        assertion: AssertionLike | None = None,
        context: Any = None,
    ) -> PolicyDecision:
        """
        Convenience method for guards: authorize or raise.

        Usage:
            await auth.require(user, "post.delete", IsOwner(), post)

        Raises:
            AccessDeniedError: If not granted
        """
        decision = await self.authorize(identity, permission, assertion, context)
        if not decision.allowed:
            raise AccessDeniedError(decision)
        return decision

    async def get_permissions(self, identity: Any) -> frozenset[str]:
        """Get the identity's effective permission set."""
        return await self.resolver.resolve(identity_roles(identity, self.roles_field))

    async def get_roles(self, identity: Any) -> list[Role]:
        """
        Get the identity's directly assigned roles that exist in the store.

        Unknown role ids are skipped with a warning (for display, not checks).
        """
        role_ids = sorted(identity_roles(identity, self.roles_field))
        return await self.role_store.get_roles(role_ids)

    async def filter_granted(
        self,
        identity: Any,
        permission: str,
        resources: Sequence[Any],
        assertion: AssertionLike | None = None,
    ) -> list[Any]:
        """
        Filter resources to those the identity may act on.

        Each resource is passed to the assertion as its context.
        Without the base permission, nothing is returned and the
        assertion is never called.
        """
        permissions = await self.get_permissions(identity)
        if not self.checker.has_permission(permissions, permission):
            return []

        granted = []
        for resource in resources:
            if await self.assertion_engine.evaluate(assertion, identity, resource):
                granted.append(resource)
        return granted

    def invalidate(self, role_ids: Sequence[str] | None = None) -> int:
        """
        Drop memoized permission sets after role data changed.

        Args:
            role_ids: Changed roles (None = everything)
        """
        if isinstance(self.role_store, CachedRoleStore):
            if role_ids is None:
                self.role_store.invalidate()
            else:
                for role_id in role_ids:
                    self.role_store.invalidate(role_id)

        count = self.resolver.invalidate(role_ids)
        logger.debug("Permission cache invalidated", roles=role_ids, entries=count)
        return count


def _assertion_name(assertion: AssertionLike) -> str:
    return getattr(assertion, "__name__", None) or type(assertion).__name__
