import pytest

from adminpanel.models import UserRole
from adminpanel.services.access_guard import AccessGuard, Outcome


@pytest.fixture()
def guard(resolver):
    return AccessGuard(resolver)


@pytest.mark.parametrize(
    "required, mode",
    [
        ("delete:users", "all"),
        (["delete:users", "manage:audit"], "all"),
        (["never:defined", "also:missing"], "any"),
        ("not:in-catalog", "all"),
        ([], "any"),
    ],
)
def test_admin_is_always_allowed(guard, make_user, required, mode):
    admin = make_user("root@example.com", role=UserRole.admin)

    decision = guard.authorize(admin.id, required, mode)

    assert decision.allowed
    assert decision.outcome is Outcome.allow


def test_single_name_allow_and_deny(guard, make_user):
    user = make_user()

    assert guard.authorize(user.id, "read:profile").allowed

    decision = guard.authorize(user.id, "delete:users")
    assert decision.outcome is Outcome.deny
    assert decision.missing == ("delete:users",)
    assert "delete:users" in decision.message


def test_all_mode_requires_every_name(guard, make_user):
    user = make_user()

    decision = guard.authorize(user.id, ["read:profile", "read:users"], mode="all")

    assert decision.outcome is Outcome.deny
    assert decision.missing == ("read:users",)
    assert "All of the following" in decision.message
    assert guard.authorize(user.id, ["read:profile", "update:profile"], mode="all").allowed


def test_any_mode_requires_one_name(guard, make_user):
    user = make_user()

    assert guard.authorize(user.id, ["read:users", "read:profile"], mode="any").allowed

    decision = guard.authorize(user.id, ["read:users", "delete:users"], mode="any")
    assert decision.outcome is Outcome.deny
    assert "At least one" in decision.message
    assert "read:users, delete:users" in decision.message


def test_explicit_grant_is_honoured(guard, permission_service, make_user, make_permission):
    user = make_user()
    perm = make_permission("read:widgets")
    assert not guard.authorize(user.id, "read:widgets").allowed

    permission_service.grant(user.id, perm.id)

    assert guard.authorize(user.id, "read:widgets").allowed


def test_missing_principal_is_unauthenticated_not_denied(guard):
    assert guard.authorize(None, "read:users").outcome is Outcome.unauthenticated
    assert guard.authorize(424242, "read:users").outcome is Outcome.unauthenticated


def test_empty_requirement_allows(guard, make_user):
    user = make_user()

    assert guard.authorize(user.id, [], mode="all").allowed
    assert guard.authorize(user.id, [], mode="any").allowed


def test_unknown_mode_is_rejected(guard, make_user):
    user = make_user()

    with pytest.raises(ValueError):
        guard.authorize(user.id, "read:profile", mode="some")
