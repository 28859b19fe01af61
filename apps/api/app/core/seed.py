from sqlalchemy.orm import Session
import logging

from ..models.user import User
from ..services.user_service import find_by_email, normalize_email
from .config import Settings
from .security import hash_password

logger = logging.getLogger(__name__)


def seed_admin(session: Session, settings: Settings) -> User | None:
    """
    Create or refresh the bootstrap admin account.
    - Only runs when ADMIN_EMAIL and ADMIN_PASSWORD are both set.
    - An existing user with that email is promoted to admin and gets the configured password.
    """
    if not settings.admin_email or not settings.admin_password:
        return None

    user = find_by_email(session, settings.admin_email)
    if user:
        user.role = "admin"
        user.password_hash = hash_password(settings.admin_password)
        logger.info("Seed admin updated: %s", user.email)
    else:
        user = User(
            name=settings.admin_name,
            email=normalize_email(settings.admin_email),
            password_hash=hash_password(settings.admin_password),
            role="admin",
        )
        session.add(user)
        logger.info("Seed admin created: %s", user.email)

    session.commit()
    return user
