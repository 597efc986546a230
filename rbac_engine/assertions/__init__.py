"""
Assertions for fine-grained authorization.

Built-in assertions:
- is_owner: Identity owns the resource
- not_owner: Segregation of duties
- same_tenant: Tenant isolation
- status_in: Resource status check

Combine with AllOf / AnyOf / Not, or pass any (identity, context) callable.
"""

from .engine import AssertionEngine
from .builtin import (
    IsOwner,
    NotOwner,
    SameTenant,
    StatusIn,
    AllOf,
    AnyOf,
    Not,
)

__all__ = [
    "AssertionEngine",
    "IsOwner",
    "NotOwner",
    "SameTenant",
    "StatusIn",
    "AllOf",
    "AnyOf",
    "Not",
]
