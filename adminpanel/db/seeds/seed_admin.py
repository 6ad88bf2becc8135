"""Seed the initial admin user from env vars."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from adminpanel.core.config import settings
from adminpanel.core.security import hash_password
from adminpanel.models.user import User, UserRole

logger = logging.getLogger("adminpanel.seeds")


def seed_admin(db: Session) -> Optional[User]:
    """Create the admin user unless some admin already exists."""
    if db.query(User).filter(User.role == UserRole.admin).first():
        logger.info("An admin already exists, skipping admin seed")
        return None

    existing = db.query(User).filter(User.email == settings.ADMIN_EMAIL).first()
    if existing:
        existing.role = UserRole.admin
        db.commit()
        logger.info("Promoted existing user %s to admin", settings.ADMIN_EMAIL)
        return existing

    admin = User(
        email=settings.ADMIN_EMAIL,
        hashed_password=hash_password(settings.ADMIN_PASSWORD),
        full_name="Admin System",
        role=UserRole.admin,
        is_active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Created admin user %s", settings.ADMIN_EMAIL)
    return admin
