"""
Built-in assertions.

These are common predicates that can be passed to any is_granted call.
Add custom assertions by subclassing Assertion (optionally registering
them with @AuthRegistry.assertion), or pass any plain callable.

Usage:
    await auth.is_granted(user, "post.edit", IsOwner(), post)
    await auth.is_granted(user, "invoice.approve", AllOf(
        NotOwner(),
        StatusIn(["pending", "review"]),
    ), invoice)
"""

from typing import Any, Iterable

from ..interfaces import Assertion, AssertionLike
from ..registry import AuthRegistry
from .engine import AssertionEngine


def read_field(obj: Any, name: str) -> Any:
    """Read ``name`` from a mapping key or an attribute."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


@AuthRegistry.assertion("is_owner")
class IsOwner(Assertion):
    """
    Check that the identity owns the resource in context.

    Usage:
        await auth.is_granted(user, "post.edit", IsOwner(), post)

    Configuration:
        owner_field: Field on the resource holding the owner id (default: "created_by_id")
        identity_field: Field on the identity holding its id (default: "id")
    """

    def __init__(
        self,
        owner_field: str = "created_by_id",
        identity_field: str = "id",
        **kwargs: Any,
    ):
        self.owner_field = owner_field
        self.identity_field = identity_field

    def evaluate(self, identity: Any, context: Any) -> bool:
        owner_id = read_field(context, self.owner_field)
        identity_id = read_field(identity, self.identity_field)

        if owner_id is None or identity_id is None:
            return False  # Unknown ownership never grants

        return owner_id == identity_id


@AuthRegistry.assertion("not_owner")
class NotOwner(IsOwner):
    """
    Check that the identity is NOT the owner (segregation of duties).

    A resource without a recorded owner passes.
    """

    def evaluate(self, identity: Any, context: Any) -> bool:
        owner_id = read_field(context, self.owner_field)
        identity_id = read_field(identity, self.identity_field)

        if owner_id is None or identity_id is None:
            return True

        return owner_id != identity_id


@AuthRegistry.assertion("same_tenant")
class SameTenant(Assertion):
    """
    Check that identity and resource belong to the same tenant.

    Configuration:
        tenant_field: Field name for tenant ID (default: "organization_id")
    """

    def __init__(
        self,
        tenant_field: str = "organization_id",
        **kwargs: Any,
    ):
        self.tenant_field = tenant_field

    def evaluate(self, identity: Any, context: Any) -> bool:
        identity_tenant = read_field(identity, self.tenant_field)
        resource_tenant = read_field(context, self.tenant_field)

        if identity_tenant is None or resource_tenant is None:
            return False

        return identity_tenant == resource_tenant


@AuthRegistry.assertion("status_in")
class StatusIn(Assertion):
    """
    Check that the resource has one of the allowed statuses.

    Usage:
        StatusIn("pending")
        StatusIn(["pending", "review"])

    Configuration:
        status_field: Field on resource containing status (default: "status")
    """

    def __init__(
        self,
        allowed: str | Iterable[str] = (),
        status_field: str = "status",
        **kwargs: Any,
    ):
        if isinstance(allowed, str):
            allowed = [allowed]
        self.allowed = frozenset(allowed)
        self.status_field = status_field

    def evaluate(self, identity: Any, context: Any) -> bool:
        return read_field(context, self.status_field) in self.allowed


# ============================================================
# COMBINATORS
# ============================================================

class AllOf(Assertion):
    """Passes when every child passes. Stops at the first failure."""

    def __init__(self, *assertions: AssertionLike):
        self.assertions = assertions
        self._engine = AssertionEngine()

    async def evaluate(self, identity: Any, context: Any) -> bool:
        for assertion in self.assertions:
            if not await self._engine.evaluate(assertion, identity, context):
                return False
        return True


class AnyOf(Assertion):
    """Passes when at least one child passes. Stops at the first success."""

    def __init__(self, *assertions: AssertionLike):
        self.assertions = assertions
        self._engine = AssertionEngine()

    async def evaluate(self, identity: Any, context: Any) -> bool:
        for assertion in self.assertions:
            if await self._engine.evaluate(assertion, identity, context):
                return True
        return False


class Not(Assertion):
    """Inverts a child assertion."""

    def __init__(self, assertion: AssertionLike):
        self.assertion = assertion
        self._engine = AssertionEngine()

    async def evaluate(self, identity: Any, context: Any) -> bool:
        return not await self._engine.evaluate(self.assertion, identity, context)
