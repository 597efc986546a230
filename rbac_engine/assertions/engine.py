"""
Assertion engine.

Runs the caller's contextual predicate once the base permission is known
to be held. Sync and async predicates are both accepted.
"""

import inspect
from typing import Any

from ..interfaces import AssertionLike


class AssertionEngine:
    """
    Evaluates assertions.

    Holds no state; errors raised by the assertion propagate as-is.
    """

    async def evaluate(
        self,
        assertion: AssertionLike | None,
        identity: Any,
        context: Any = None,
    ) -> bool:
        """
        Evaluate an assertion.

        Args:
            assertion: Predicate ``(identity, context) -> bool`` or None
            identity: The principal being checked
            context: Caller-supplied value passed through unchanged

        Returns:
            True when no assertion is given, else the predicate's result
        """
        if assertion is None:
            return True

        result = assertion(identity, context)
        if inspect.isawaitable(result):
            result = await result
        return bool(result)
