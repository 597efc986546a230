"""
Name lookup for role store backends and reusable assertions.

Lets settings say ``RBAC_ROLE_STORE=database`` and lets callers refer to
built-in assertions by name, e.g. from a permission map in config.

Usage:
    @AuthRegistry.role_store("ldap")
    class LdapRoleStore(RoleStore):
        ...

    store = AuthRegistry.get_role_store("ldap", url="ldap://...")
    owner_only = AuthRegistry.get_assertion("is_owner", owner_field="author_id")
"""

from typing import Any, Callable, Type, TypeVar

from .interfaces import Assertion, RoleStore

T = TypeVar("T")


def _register(table: dict[str, type], base: type, name: str) -> Callable[[Type[T]], Type[T]]:
    def decorator(component: Type[T]) -> Type[T]:
        if not (isinstance(component, type) and issubclass(component, base)):
            raise TypeError(f"{component!r} is not a subclass of {base.__name__}")
        table[name] = component
        return component
    return decorator


def _build(table: dict[str, type], kind: str, name: str, kwargs: dict[str, Any]) -> Any:
    component = table.get(name)
    if component is None:
        raise ValueError(f"Unknown {kind}: '{name}'. Available: {sorted(table)}")
    return component(**kwargs)


class AuthRegistry:
    """
    Class-level tables of role stores and assertions.

    Backends register on import, so ``rbac_engine.factory`` imports the
    ``stores`` and ``assertions`` packages before looking anything up.
    """

    _role_stores: dict[str, Type[RoleStore]] = {}
    _assertions: dict[str, Type[Assertion]] = {}

    @classmethod
    def role_store(cls, name: str) -> Callable[[Type[RoleStore]], Type[RoleStore]]:
        """Register a RoleStore subclass under ``name``."""
        return _register(cls._role_stores, RoleStore, name)

    @classmethod
    def assertion(cls, name: str) -> Callable[[Type[Assertion]], Type[Assertion]]:
        """Register an Assertion subclass under ``name``."""
        return _register(cls._assertions, Assertion, name)

    @classmethod
    def get_role_store(cls, name: str, **kwargs: Any) -> RoleStore:
        """
        Instantiate a registered role store.

        Stores accept and ignore settings meant for other backends, so the
        factory can pass path, database_url and echo to any of them.

        Raises:
            ValueError: If nothing is registered under ``name``
        """
        return _build(cls._role_stores, "role store", name, kwargs)

    @classmethod
    def get_assertion(cls, name: str, **kwargs: Any) -> Assertion:
        """Instantiate a registered assertion (ValueError if unknown)."""
        return _build(cls._assertions, "assertion", name, kwargs)

    @classmethod
    def list_role_stores(cls) -> list[str]:
        return sorted(cls._role_stores)

    @classmethod
    def has_assertion(cls, name: str) -> bool:
        return name in cls._assertions
