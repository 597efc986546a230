"""
Tests for the authorization service facade.
"""

import asyncio

import pytest
from structlog.testing import capture_logs

from rbac_engine import (
    AccessDeniedError,
    AuthorizationService,
    CyclicRoleHierarchyError,
    Identity,
    NotFoundError,
    Role,
)
from rbac_engine.assertions import IsOwner
from rbac_engine.stores import CachedRoleStore, MemoryRoleStore


# ============ Worked Example ============


@pytest.fixture
def example_auth() -> AuthorizationService:
    """editor {post.edit} inherits viewer {post.view}."""
    return AuthorizationService(MemoryRoleStore([
        Role("viewer", {"post.view"}),
        Role("editor", {"post.edit"}, parents={"viewer"}),
    ]))


@pytest.mark.asyncio
async def test_inherited_permission_is_granted(example_auth):
    identity = Identity(id=1, roles={"editor"})

    assert await example_auth.is_granted(identity, "post.view") is True


@pytest.mark.asyncio
async def test_missing_permission_is_denied(example_auth):
    identity = Identity(id=1, roles={"editor"})

    assert await example_auth.is_granted(identity, "post.delete") is False


@pytest.mark.asyncio
async def test_failing_assertion_denies_held_permission(example_auth):
    identity = Identity(id=1, roles={"editor"})

    def is_author(identity, post):
        return False

    assert await example_auth.is_granted(identity, "post.edit", is_author) is False


# ============ Assertions ============


@pytest.mark.asyncio
async def test_assertion_not_evaluated_without_permission(auth, viewer, deny_assertion, allow_assertion):
    """The base check short-circuits: the assertion is never called."""
    assert await auth.is_granted(viewer, "post.delete", allow_assertion, {"id": 1}) is False
    assert await auth.is_granted(viewer, "post.delete", deny_assertion) is False

    assert allow_assertion.call_count == 0
    assert deny_assertion.call_count == 0


@pytest.mark.asyncio
async def test_assertion_result_returned_when_permission_held(auth, editor, allow_assertion, deny_assertion):
    assert await auth.is_granted(editor, "post.edit", allow_assertion) is True
    assert await auth.is_granted(editor, "post.edit", deny_assertion) is False

    assert allow_assertion.call_count == 1
    assert deny_assertion.call_count == 1


@pytest.mark.asyncio
async def test_assertion_receives_identity_and_context(auth, editor, allow_assertion, post_factory):
    post = post_factory(id=10, created_by_id=1)

    await auth.is_granted(editor, "post.edit", allow_assertion, post)

    assert allow_assertion.calls == [(editor, post)]


@pytest.mark.asyncio
async def test_no_assertion_means_base_result(auth, editor):
    assert await auth.is_granted(editor, "post.edit") is True


@pytest.mark.asyncio
async def test_async_assertion_is_awaited(auth, editor):
    async def owns(identity, post):
        return post["owner"] == identity.id

    assert await auth.is_granted(editor, "post.edit", owns, {"owner": 1}) is True
    assert await auth.is_granted(editor, "post.edit", owns, {"owner": 99}) is False


@pytest.mark.asyncio
async def test_assertion_error_propagates(auth, editor):
    class BackendDown(Exception):
        pass

    def flaky(identity, context):
        raise BackendDown("ownership lookup failed")

    with pytest.raises(BackendDown):
        await auth.is_granted(editor, "post.edit", flaky)


@pytest.mark.asyncio
async def test_builtin_assertion(auth, editor, post_factory):
    mine = post_factory(id=1, created_by_id=1)
    theirs = post_factory(id=2, created_by_id=5)

    assert await auth.is_granted(editor, "post.edit", IsOwner(), mine) is True
    assert await auth.is_granted(editor, "post.edit", IsOwner(), theirs) is False


# ============ Errors ============


@pytest.mark.asyncio
async def test_unknown_role_raises_not_found(auth):
    identity = Identity(id=3, roles={"editor", "ghost"})

    with pytest.raises(NotFoundError) as exc_info:
        await auth.is_granted(identity, "post.view")

    assert exc_info.value.role_id == "ghost"


@pytest.mark.asyncio
async def test_cycle_raises_instead_of_denying(cyclic_store):
    auth = AuthorizationService(cyclic_store)

    with pytest.raises(CyclicRoleHierarchyError):
        await auth.is_granted(Identity(id=1, roles={"a"}), "x.read")


@pytest.mark.asyncio
async def test_identity_without_roles_is_denied(auth):
    assert await auth.is_granted(Identity(id=4), "post.view") is False


# ============ Decisions ============


@pytest.mark.asyncio
async def test_authorize_explains_denial(auth, viewer):
    decision = await auth.authorize(viewer, "post.edit")

    assert decision.allowed is False
    assert decision.reason == "Missing permission: post.edit"
    assert decision.metadata["permission"] == "post.edit"


@pytest.mark.asyncio
async def test_authorize_explains_failed_assertion(auth, editor):
    def is_author(identity, context):
        return False

    decision = await auth.authorize(editor, "post.edit", is_author)

    assert not decision
    assert decision.reason == "Assertion 'is_author' not met"


@pytest.mark.asyncio
async def test_authorize_allow_reports_grant(auth, editor):
    decision = await auth.authorize(editor, "post.view")

    assert decision.allowed
    assert decision.metadata["grant"] == "post.view"


@pytest.mark.asyncio
async def test_require_raises_access_denied(auth, viewer):
    with pytest.raises(AccessDeniedError) as exc_info:
        await auth.require(viewer, "post.edit")

    assert exc_info.value.decision.allowed is False


@pytest.mark.asyncio
async def test_require_returns_decision_when_granted(auth, editor):
    decision = await auth.require(editor, "post.edit")

    assert decision.allowed


# ============ Helpers ============


@pytest.mark.asyncio
async def test_get_permissions(auth, editor):
    assert await auth.get_permissions(editor) == {"post.edit", "post.view", "comment.view"}


@pytest.mark.asyncio
async def test_get_roles_skips_unknown_with_warning(auth):
    identity = Identity(id=5, roles={"editor", "ghost"})

    with capture_logs() as logs:
        roles = await auth.get_roles(identity)

    assert [role.id for role in roles] == ["editor"]
    assert any(
        log["event"] == "Role not found" and log["role_id"] == "ghost" and log["log_level"] == "warning"
        for log in logs
    )


@pytest.mark.asyncio
async def test_plain_object_actor(auth):
    class User:
        id = 9
        roles = ["editor"]

    assert await auth.is_granted(User(), "post.view") is True


@pytest.mark.asyncio
async def test_custom_roles_field(role_store):
    auth = AuthorizationService(role_store, roles_field="groups")

    class User:
        id = 9
        groups = ("admin",)

    assert await auth.is_granted(User(), "user.manage") is True


@pytest.mark.asyncio
async def test_filter_granted(auth, editor, post_factory):
    posts = [post_factory(id=i, created_by_id=i % 2) for i in range(4)]

    mine = await auth.filter_granted(editor, "post.edit", posts, IsOwner())

    assert [post.id for post in mine] == [1, 3]


@pytest.mark.asyncio
async def test_filter_granted_without_permission(auth, viewer, post_factory, allow_assertion):
    posts = [post_factory(id=1), post_factory(id=2)]

    assert await auth.filter_granted(viewer, "post.edit", posts, allow_assertion) == []
    assert allow_assertion.call_count == 0


@pytest.mark.asyncio
async def test_invalidate_sees_role_changes():
    store = MemoryRoleStore([Role("viewer", {"post.view"})])
    auth = AuthorizationService(store)
    identity = Identity(id=1, roles={"viewer"})
    assert await auth.is_granted(identity, "post.share") is False

    store.add_role(Role("viewer", {"post.view", "post.share"}))
    assert await auth.is_granted(identity, "post.share") is False  # still memoized

    auth.invalidate(["viewer"])
    assert await auth.is_granted(identity, "post.share") is True


@pytest.mark.asyncio
async def test_invalidate_clears_cached_role_store():
    backing = MemoryRoleStore([Role("viewer", {"post.view"})])
    auth = AuthorizationService(CachedRoleStore(backing, ttl=60), cache_enabled=False)
    identity = Identity(id=1, roles={"viewer"})
    assert await auth.is_granted(identity, "post.share") is False

    backing.add_role(Role("viewer", {"post.share"}))
    auth.invalidate()

    assert await auth.is_granted(identity, "post.share") is True


@pytest.mark.asyncio
async def test_cache_disabled_reads_store_every_time():
    store = MemoryRoleStore([Role("viewer", {"post.view"})])
    auth = AuthorizationService(store, cache_enabled=False)
    identity = Identity(id=1, roles={"viewer"})

    store.add_role(Role("viewer", {"post.share"}))

    assert await auth.is_granted(identity, "post.share") is True


@pytest.mark.asyncio
async def test_revoked_permission_not_served_after_racing_check(gated_store, viewer):
    auth = AuthorizationService(gated_store)
    in_flight = asyncio.create_task(auth.is_granted(viewer, "comment.view"))
    await gated_store.entered.wait()

    gated_store.store.add_role(Role("viewer", {"post.view"}))
    auth.invalidate(["viewer"])
    gated_store.release.set()

    assert await in_flight is True
    assert await auth.is_granted(viewer, "comment.view") is False
