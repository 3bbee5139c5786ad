# examportal/core/init.py

"""
Application initialization module
Handles initial setup tasks like creating the default admin account
"""

import logging

from sqlalchemy.orm import Session

from examportal.core.config import settings
from examportal.models.user import ROLE_ADMIN, User
from examportal.services.user import UserService

logger = logging.getLogger(__name__)


def init_default_admin(db: Session) -> None:
    """
    Create the default admin account if no admin exists yet.

    Args:
        db: Database session
    """
    existing_admin = db.query(User).filter(User.role == ROLE_ADMIN).first()
    if existing_admin:
        logger.info(
            f"Admin user already exists (ID: {existing_admin.id}, "
            f"Username: {existing_admin.username})"
        )
        return

    admin = UserService(db).create_user(
        username=settings.admin_default_username,
        email=settings.admin_default_email,
        role=ROLE_ADMIN,
    )
    logger.info("=" * 60)
    logger.info(f"Default admin created: {admin.username} (ID: {admin.id})")
    logger.info("Issue a token with: python main.py issue-token --username admin")
    logger.info("=" * 60)


def initialize_application(db: Session) -> None:
    """
    Run all application initialization tasks.

    Args:
        db: Database session
    """
    logger.info("Starting application initialization...")
    init_default_admin(db)
    logger.info("Application initialization completed")
