import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DEBUG", "false")

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import adminpanel.models  # noqa: F401
from adminpanel.api.deps import get_cache
from adminpanel.core.security import create_access_token, hash_password
from adminpanel.db.base import Base
from adminpanel.db.seeds.seed_permissions import seed_permissions
from adminpanel.db.session import get_db
from adminpanel.main import app
from adminpanel.models import Permission, User, UserRole
from adminpanel.services.audit_service import AuditService
from adminpanel.services.cache_service import CacheService
from adminpanel.services.permission_resolver import PermissionResolver
from adminpanel.services.permission_service import PermissionService
from adminpanel.services.user_service import UserService


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def cache():
    return CacheService(client=fakeredis.FakeRedis(decode_responses=True))


@pytest.fixture()
def resolver(db_session, cache):
    return PermissionResolver(db_session, cache, ttl_seconds=1800)


@pytest.fixture()
def audit(db_session):
    return AuditService(db_session)


@pytest.fixture()
def permission_service(db_session, resolver, audit):
    return PermissionService(db_session, resolver, audit)


@pytest.fixture()
def user_service(db_session, resolver, audit):
    return UserService(db_session, resolver, audit)


@pytest.fixture()
def make_user(db_session):
    def _make(email="user@example.com", role=UserRole.user, password="secret123"):
        user = User(
            email=email,
            hashed_password=hash_password(password) if password else None,
            full_name=email.split("@")[0].title(),
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_permission(db_session):
    def _make(name="read:widgets", description="View widgets"):
        permission = Permission(name=name, description=description)
        db_session.add(permission)
        db_session.commit()
        db_session.refresh(permission)
        return permission

    return _make


@pytest.fixture()
def seeded(db_session):
    seed_permissions(db_session)
    return db_session


@pytest.fixture()
def auth_headers():
    def _headers(user_id: int) -> dict:
        token = create_access_token({"sub": str(user_id)})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def client(session_factory, cache):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
