"""
Permission checkers.

Available checkers:
- PermissionChecker: exact match only (default)
- WildcardPermissionChecker: also honours "*" and "namespace.*" grants
  (opt-in with RBAC_WILDCARD_PERMISSIONS=true)
"""

from typing import AbstractSet


class PermissionChecker:
    """
    Exact-match permission lookup.

    A pure set-membership test against the effective permission set.
    "post.*" in a role is just another opaque identifier here.
    """

    def has_permission(self, effective_permissions: AbstractSet[str], requested: str) -> bool:
        """Check if ``requested`` is in the effective set."""
        return requested in effective_permissions

    def matching_grant(self, effective_permissions: AbstractSet[str], requested: str) -> str | None:
        """The grant that satisfied ``requested``, or None."""
        return requested if requested in effective_permissions else None


class WildcardPermissionChecker(PermissionChecker):
    """
    Permission lookup with namespace wildcards.

    Matches, in order:
    1. Exact permission ("post.edit")
    2. Any enclosing namespace wildcard ("post.*", then "*")

    "post.*" covers "post.edit" and "post.comment.hide" but not "post"
    itself.

    Configuration:
        separator: Namespace separator (default: ".")
    """

    def __init__(self, separator: str = "."):
        self.separator = separator

    def has_permission(self, effective_permissions: AbstractSet[str], requested: str) -> bool:
        return self.matching_grant(effective_permissions, requested) is not None

    def matching_grant(self, effective_permissions: AbstractSet[str], requested: str) -> str | None:
        if requested in effective_permissions:
            return requested

        parts = requested.split(self.separator)
        for i in range(len(parts) - 1, 0, -1):
            candidate = self.separator.join(parts[:i]) + f"{self.separator}*"
            if candidate in effective_permissions:
                return candidate

        if "*" in effective_permissions:
            return "*"

        return None
