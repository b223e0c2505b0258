"""
Bootstrap utilities for first admin creation.
Ensures the default administrator account exists before the API serves traffic.
"""
import logging
from sqlalchemy.orm import Session

from ..auth.exceptions import EmailAlreadyExistsException
from ..auth.models import UserRole
from ..auth.service import create_user, get_user_by_email
from ..config import Settings
from .security import hash_password

logger = logging.getLogger(__name__)


def bootstrap_admin_if_needed(db: Session, settings: Settings) -> bool:
    """
    Create the default admin account unless it already exists.

    Safe to call repeatedly: an existing account with the bootstrap email,
    including one created concurrently by another process, makes this a no-op.
    Store errors propagate so startup aborts.

    Args:
        db: Database session
        settings: Application settings carrying the bootstrap credentials

    Returns:
        bool: True if the admin was created, False if it already existed
    """
    email = settings.bootstrap_admin_email
    logger.info(f"🔍 Checking for bootstrap admin {email}...")

    if get_user_by_email(db, email):
        logger.info("✅ Bootstrap admin found. Bootstrap not needed.")
        return False

    logger.info("🚀 Bootstrap admin not found. Creating it...")

    password_hash = hash_password(settings.bootstrap_admin_password, settings.bcrypt_rounds)
    try:
        admin = create_user(
            db,
            email=email,
            password_hash=password_hash,
            first_name=settings.bootstrap_admin_first_name,
            last_name=settings.bootstrap_admin_last_name,
            role=UserRole.ADMIN,
        )
        db.commit()
    except EmailAlreadyExistsException:
        logger.info("✅ Bootstrap admin was created by another process. Nothing to do.")
        return False

    logger.info(f"🎉 Bootstrap admin created successfully: {admin.email} (ID: {admin.id})")
    if settings.bootstrap_admin_password == "admin123":
        logger.warning("⚠️  Bootstrap admin uses the default password. Change BOOTSTRAP_ADMIN_PASSWORD.")
    return True
