"""Seed the permission catalog into the database."""

import logging

from sqlalchemy.orm import Session

from adminpanel.core.permissions import list_definitions
from adminpanel.models.permission import Permission

logger = logging.getLogger("adminpanel.seeds")


def seed_permissions(db: Session) -> int:
    """Upsert every catalog definition by name; return how many were created.

    Existing rows keep their id and get their description refreshed.
    """
    created = 0
    for definition in list_definitions():
        existing = db.query(Permission).filter(Permission.name == definition["name"]).first()
        if existing:
            existing.description = definition["description"]
        else:
            db.add(Permission(**definition))
            created += 1

    db.commit()
    logger.info("Seeded %d permissions (%d new)", len(list_definitions()), created)
    return created
