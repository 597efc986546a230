"""
Configuration-driven construction.

Usage:
    from rbac_engine.factory import build_authorization_service

    auth = await build_authorization_service()          # from RBAC_* env vars
    auth = await build_authorization_service(settings)  # explicit settings
"""

from typing import Any

from .checker import PermissionChecker, WildcardPermissionChecker
from .config import RBACSettings, get_settings
from .interfaces import RoleStore
from .registry import AuthRegistry
from .service import AuthorizationService
from .stores.cached import CachedRoleStore

# Import to register default implementations
from . import stores  # noqa: F401
from . import assertions  # noqa: F401


def build_role_store(settings: RBACSettings | None = None, **overrides: Any) -> RoleStore:
    """
    Get the configured role store.

    Reads RBAC_ROLE_STORE. Default: "memory" (empty store).
    """
    settings = settings or get_settings()

    store_config: dict[str, Any] = {
        "path": settings.roles_file,
        "database_url": settings.database_url,
        "echo": settings.database_echo,
    }
    store_config.update(overrides)

    store = AuthRegistry.get_role_store(settings.role_store, **store_config)
    if settings.role_cache_ttl:
        store = CachedRoleStore(store, ttl=settings.role_cache_ttl)
    return store


def build_checker(settings: RBACSettings | None = None) -> PermissionChecker:
    """Exact-match checker unless RBAC_WILDCARD_PERMISSIONS is set."""
    settings = settings or get_settings()
    if settings.wildcard_permissions:
        return WildcardPermissionChecker(separator=settings.permission_separator)
    return PermissionChecker()


async def build_authorization_service(
    settings: RBACSettings | None = None,
    role_store: RoleStore | None = None,
) -> AuthorizationService:
    """
    Build an AuthorizationService from settings.

    Args:
        settings: Settings to use (default: environment)
        role_store: Use this store instead of the configured backend

    Raises:
        CyclicRoleHierarchyError: If validation is on and the hierarchy loops
        NotFoundError: If validation is on and a parent role is missing
    """
    settings = settings or get_settings()
    store = role_store or build_role_store(settings)

    service = AuthorizationService(
        store,
        checker=build_checker(settings),
        cache_enabled=settings.cache_enabled,
        cache_ttl=settings.cache_ttl,
        roles_field=settings.roles_field,
    )

    if settings.validate_on_startup:
        await service.resolver.validate()

    return service
