import pytest

from adminpanel.core.exceptions import ResourceNotFoundError
from adminpanel.core.permissions import role_permissions
from adminpanel.models import UserRole
from adminpanel.services.permission_resolver import ALL_PERMISSIONS, AllPermissions, cache_key


def test_non_admin_gets_role_union_explicit(resolver, db_session, make_user, make_permission):
    user = make_user()
    widgets = make_permission("read:widgets")
    overlap = make_permission("read:profile", "Also carried by the user role")
    user.permissions.extend([widgets, overlap])
    db_session.commit()

    effective = resolver.resolve(user.id)

    assert effective == frozenset(role_permissions("user")) | {"read:widgets"}


def test_admin_resolves_to_sentinel(resolver, make_user):
    admin = make_user("root@example.com", role=UserRole.admin)

    effective = resolver.resolve(admin.id)

    assert effective is ALL_PERMISSIONS
    assert isinstance(effective, AllPermissions)
    assert "anything:at-all" in effective


def test_unknown_user_raises_not_found(resolver):
    with pytest.raises(ResourceNotFoundError):
        resolver.resolve(999)


def test_result_is_served_from_cache_within_ttl(resolver, db_session, make_user, make_permission):
    user = make_user()
    first = resolver.resolve(user.id)

    # Bypass the service so nothing invalidates the entry.
    user.permissions.append(make_permission("read:widgets"))
    db_session.commit()

    assert resolver.resolve(user.id) == first
    assert "read:widgets" not in resolver.resolve(user.id)


def test_cached_entry_has_ttl(resolver, cache, make_user):
    user = make_user()
    resolver.resolve(user.id)

    ttl = cache.client.ttl(cache_key(user.id))
    assert 0 < ttl <= 1800


def test_admin_sentinel_survives_cache_round_trip(resolver, make_user):
    admin = make_user("root@example.com", role=UserRole.admin)
    resolver.resolve(admin.id)

    assert resolver.resolve(admin.id) is ALL_PERMISSIONS


def test_invalidate_forces_reload(resolver, db_session, make_user, make_permission):
    user = make_user()
    resolver.resolve(user.id)
    user.permissions.append(make_permission("read:widgets"))
    db_session.commit()

    resolver.invalidate(user.id)

    assert "read:widgets" in resolver.resolve(user.id)


def test_cache_outage_falls_back_to_database(db_session, make_user):
    import redis

    from adminpanel.services.cache_service import CacheService
    from adminpanel.services.permission_resolver import PermissionResolver

    class BrokenRedis:
        def get(self, key):
            raise redis.ConnectionError("down")

        def setex(self, key, ttl, value):
            raise redis.ConnectionError("down")

        def delete(self, key):
            raise redis.ConnectionError("down")

    user = make_user()
    resolver = PermissionResolver(db_session, CacheService(client=BrokenRedis()))

    assert resolver.resolve(user.id) == frozenset(role_permissions("user"))
    resolver.invalidate(user.id)


def test_deactivated_user_is_unresolvable(resolver, db_session, make_user, cache):
    user = make_user()
    user.is_active = False
    db_session.commit()

    with pytest.raises(ResourceNotFoundError):
        resolver.resolve(user.id)
    assert cache.get(cache_key(user.id)) is None
