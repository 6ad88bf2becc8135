import json

import pytest

from adminpanel.core.exceptions import (
    AuthenticationError,
    LastAdminError,
    ResourceConflictError,
    ResourceNotFoundError,
    ValidationError,
)
from adminpanel.core.security import verify_password
from adminpanel.models import AuditLog, User, UserRole
from adminpanel.schemas.schemas import AuditContext
from adminpanel.services.access_guard import AccessGuard, Outcome
from adminpanel.services.permission_resolver import ALL_PERMISSIONS


def test_deleting_the_only_admin_is_refused(user_service, make_user, db_session):
    admin = make_user("root@example.com", UserRole.admin)

    with pytest.raises(LastAdminError) as exc_info:
        user_service.delete_user(admin.id)

    assert exc_info.value.message == "Cannot delete the last administrator"
    assert exc_info.value.status_code == 400
    assert db_session.get(User, admin.id) is not None


def test_demoting_the_only_admin_is_refused(user_service, make_user, db_session):
    admin = make_user("root@example.com", UserRole.admin)

    with pytest.raises(LastAdminError) as exc_info:
        user_service.update_user(admin.id, role="user")

    assert exc_info.value.message == "Cannot demote the last administrator"
    db_session.expire_all()
    assert db_session.get(User, admin.id).role == UserRole.admin


def test_one_of_two_admins_can_be_deleted(user_service, make_user, db_session):
    first = make_user("a@example.com", UserRole.admin)
    second = make_user("b@example.com", UserRole.admin)

    user_service.delete_user(first.id)

    assert db_session.get(User, first.id) is None
    with pytest.raises(LastAdminError):
        user_service.delete_user(second.id)


def test_regular_users_can_always_be_deleted(user_service, make_user, db_session):
    make_user("root@example.com", UserRole.admin)
    user = make_user("user@example.com")

    user_service.delete_user(user.id)

    assert db_session.get(User, user.id) is None


def test_deleted_user_loses_cached_permissions(user_service, resolver, make_user):
    user = make_user("leaver@example.com")
    assert "read:profile" in resolver.resolve(user.id)

    user_service.delete_user(user.id)

    with pytest.raises(ResourceNotFoundError):
        resolver.resolve(user.id)
    decision = AccessGuard(resolver).authorize(user.id, "read:profile")
    assert decision.outcome is Outcome.unauthenticated


def test_deactivated_user_loses_cached_permissions(user_service, resolver, make_user):
    make_user("root@example.com", UserRole.admin)
    admin = make_user("second@example.com", UserRole.admin)
    assert resolver.resolve(admin.id) is ALL_PERMISSIONS

    user_service.update_user(admin.id, is_active=False)

    decision = AccessGuard(resolver).authorize(admin.id, "read:users")
    assert decision.outcome is Outcome.unauthenticated

    user_service.update_user(admin.id, is_active=True)

    assert resolver.resolve(admin.id) is ALL_PERMISSIONS


def test_admin_can_edit_own_name_without_demotion(user_service, make_user):
    admin = make_user("root@example.com", UserRole.admin)

    updated = user_service.update_user(admin.id, full_name="Root", role="admin")

    assert updated.full_name == "Root"
    assert updated.role == UserRole.admin


def test_role_change_takes_effect_immediately(user_service, resolver, make_user):
    make_user("root@example.com", UserRole.admin)
    user = make_user("user@example.com")
    assert "read:users" not in resolver.resolve(user.id)

    user_service.update_user(user.id, role="admin")

    assert resolver.resolve(user.id) is ALL_PERMISSIONS

    user_service.update_user(user.id, role="user")

    assert "read:users" not in resolver.resolve(user.id)


def test_create_user_rejects_duplicate_email(user_service):
    user_service.create_user("dup@example.com", "secret123")

    with pytest.raises(ResourceConflictError):
        user_service.create_user("dup@example.com", "other456")


def test_create_user_without_password(user_service):
    user = user_service.create_user("sso@example.com", None, "SSO User")

    assert user.hashed_password is None
    with pytest.raises(AuthenticationError):
        user_service.authenticate("sso@example.com", "anything")


def test_authenticate_success_records_login(user_service, make_user, db_session):
    user = make_user("login@example.com", password="secret123")

    result = user_service.authenticate(
        "login@example.com", "secret123", AuditContext(ip_address="10.0.0.1")
    )

    assert result["token_type"] == "bearer"
    assert result["user"] == {
        "id": user.id,
        "email": "login@example.com",
        "full_name": "Login",
        "role": "user",
    }
    db_session.refresh(user)
    assert user.last_login_at is not None

    entry = db_session.query(AuditLog).filter(AuditLog.action == "login").one()
    assert entry.user_id == user.id
    assert entry.success is True
    assert entry.ip_address == "10.0.0.1"


def test_failed_login_is_audited(user_service, make_user, db_session):
    make_user("login@example.com", password="secret123")

    with pytest.raises(AuthenticationError) as exc_info:
        user_service.authenticate("login@example.com", "wrong-password")

    assert exc_info.value.status_code == 401
    entry = db_session.query(AuditLog).filter(AuditLog.action == "login").one()
    assert entry.success is False
    assert entry.error == "Invalid email or password"


def test_inactive_account_cannot_log_in(user_service, make_user, db_session):
    user = make_user("gone@example.com", password="secret123")
    user_service.update_user(user.id, is_active=False)

    with pytest.raises(AuthenticationError) as exc_info:
        user_service.authenticate("gone@example.com", "secret123")

    assert exc_info.value.message == "Account is deactivated"
    entry = db_session.query(AuditLog).filter(AuditLog.action == "login").one()
    assert entry.success is False
    assert entry.error == "Account is deactivated"


def test_change_password(user_service, make_user, db_session):
    user = make_user("pw@example.com", password="secret123")

    user_service.change_password(user.id, "secret123", "brand-new", "brand-new")

    db_session.refresh(user)
    assert verify_password("brand-new", user.hashed_password)
    entry = db_session.query(AuditLog).filter(AuditLog.action == "password_change").one()
    assert json.loads(entry.new_values) == {"password": "[REDACTED]"}


@pytest.mark.parametrize(
    "current, new, confirm, message",
    [
        ("wrong", "brand-new", "brand-new", "Current password is incorrect"),
        ("secret123", "brand-new", "brand-old", "New passwords do not match"),
    ],
)
def test_change_password_rejections(user_service, make_user, current, new, confirm, message):
    user = make_user("pw@example.com", password="secret123")

    with pytest.raises(ValidationError) as exc_info:
        user_service.change_password(user.id, current, new, confirm)

    assert exc_info.value.message == message


def test_promote_to_admin(user_service, resolver, make_user):
    user = make_user("up@example.com")
    resolver.resolve(user.id)

    promoted = user_service.promote_to_admin("up@example.com")

    assert promoted.role == UserRole.admin
    assert resolver.resolve(user.id) is ALL_PERMISSIONS


def test_promote_unknown_email(user_service):
    with pytest.raises(ResourceNotFoundError):
        user_service.promote_to_admin("nobody@example.com")


def test_list_users_search_and_role_filter(user_service, make_user):
    make_user("root@example.com", UserRole.admin)
    make_user("alice@example.com")
    make_user("bob@example.com")

    assert user_service.list_users(search="ALI")["total"] == 1
    admins = user_service.list_users(role="admin")
    assert [u.email for u in admins["users"]] == ["root@example.com"]
    page = user_service.list_users(page=2, page_size=2)
    assert page["total"] == 3
    assert len(page["users"]) == 1
