"""
Authorization errors.

Denial is never an error: ``is_granted`` answers ``False``. These exceptions
mean the engine could not evaluate the request at all.
"""

from typing import Any


class RBACError(Exception):
    """Base class for all engine errors."""


class NotFoundError(RBACError):
    """A referenced role does not exist in the role store."""

    def __init__(self, role_id: str):
        self.role_id = role_id
        super().__init__(f"Role not found: '{role_id}'")


class CyclicRoleHierarchyError(RBACError):
    """The parent-role graph contains a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = list(cycle)
        super().__init__(
            f"Cyclic role hierarchy: {' -> '.join(self.cycle)}"
        )


class AccessDeniedError(RBACError):
    """
    Raised by ``AuthorizationService.require`` only.

    Carries the denying ``PolicyDecision`` so guards can report a reason.
    """

    def __init__(self, decision: Any):
        self.decision = decision
        super().__init__(decision.reason or "Permission denied")
