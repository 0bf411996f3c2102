"""Bootstrap data created at startup."""
import logging

from models.schemas.common import normalize_email
from models.user import Role, User, UserStatus
from utils.security import hash_password

logger = logging.getLogger(__name__)


def seed_admin(storage, email: str | None, password: str | None) -> User | None:
    """
    Create the first administrator when the users table is empty.
    Returns the new user, or None when nothing was seeded.
    """
    if not email or not password:
        return None
    if storage.count(User):
        logger.debug("Users present; skipping admin seed")
        return None

    admin = User(
        email=normalize_email(email),
        password_hash=hash_password(password),
        first_name="Administrador",
        role=Role.ADMIN,
        status=UserStatus.ACTIVE,
    )
    storage.new(admin)
    storage.save()
    logger.info("Seeded administrator %s", admin.email)
    return admin
