"""Initialize the database with the admin user."""

from typing import TYPE_CHECKING

from loguru import logger

from authentication.auth import get_password_hash
from models.config import settings
from repositories.database import Base, SessionLocal, engine
from repositories.user_repository import UserRepository
from repositories.db_models import User

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def init_db(db: "Session | None" = None) -> None:
    """
    Create tables and the initial admin user.

    Args:
        db: Optional database session. If not provided, creates tables on the
            configured engine and opens a new session.
    """
    should_close = db is None
    if db is None:
        Base.metadata.create_all(bind=engine)
        db = SessionLocal()

    try:
        existing_admin = UserRepository(db).get_by_email(settings.ADMIN_EMAIL)
        if not existing_admin:
            admin = User(
                email=settings.ADMIN_EMAIL,
                username="admin",
                display_name="Administrator",
                hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
                is_global_admin=True,
            )
            db.add(admin)
            db.commit()
            logger.info(f"Admin user created: {settings.ADMIN_EMAIL}")
            logger.info("Password taken from ADMIN_PASSWORD. Change it in production!")
        else:
            logger.info("Admin user already exists, skipping")

        logger.info("Database initialization complete")

    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        db.rollback()
        raise
    finally:
        if should_close:
            db.close()


if __name__ == "__main__":
    init_db()
