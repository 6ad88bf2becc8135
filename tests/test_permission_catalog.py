from adminpanel.core.permissions import (
    PERMISSION_NAMES,
    ROLE_PERMISSIONS,
    list_definitions,
    role_permissions,
)
from adminpanel.db.seeds.seed_permissions import seed_permissions
from adminpanel.models import Permission


def test_definitions_are_ordered_and_constant():
    first = list_definitions()
    second = list_definitions()

    assert first == second
    assert [d["name"] for d in first] == PERMISSION_NAMES
    assert first[0]["name"] == "create:users"


def test_definition_names_are_unique_and_action_resource_shaped():
    assert len(set(PERMISSION_NAMES)) == len(PERMISSION_NAMES)
    for name in PERMISSION_NAMES:
        action, _, resource = name.partition(":")
        assert action and resource


def test_role_table_only_references_catalog_names():
    for names in ROLE_PERMISSIONS.values():
        assert set(names) <= set(PERMISSION_NAMES)
    assert role_permissions("nobody") == ()


def test_seed_creates_every_definition(db_session):
    created = seed_permissions(db_session)

    assert created == len(PERMISSION_NAMES)
    names = {p.name for p in db_session.query(Permission).all()}
    assert names == set(PERMISSION_NAMES)


def test_seed_is_idempotent_and_refreshes_descriptions(db_session):
    seed_permissions(db_session)
    row = db_session.query(Permission).filter(Permission.name == "read:users").one()
    original_id = row.id
    row.description = "stale text"
    db_session.commit()

    created = seed_permissions(db_session)

    assert created == 0
    assert db_session.query(Permission).count() == len(PERMISSION_NAMES)
    row = db_session.query(Permission).filter(Permission.name == "read:users").one()
    assert row.id == original_id
    assert row.description == "View users"
