import sys
import os
import logging
from sqlalchemy.orm import Session

# Ensure we can import app modules
sys.path.append(os.getcwd())

from app.core.exceptions import DuplicateError
from app.database import SessionLocal, init_db
from app.models.profile import ProfileRole
from app.services.auth import create_profile

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def create_admin_user(email: str, password: str, full_name: str = "System Administrator") -> None:
    """Creates the first admin profile. Self sign-up only ever yields employee profiles."""
    init_db()
    db: Session = SessionLocal()
    try:
        create_profile(db, email, password, full_name, ProfileRole.ADMIN)
        db.commit()
        logger.info(f"Admin profile '{email}' created. You can now login.")
    except DuplicateError:
        db.rollback()
        logger.warning(f"Admin profile '{email}' already exists.")
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating admin profile: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    create_admin_user(
        os.getenv("ADMIN_EMAIL", "admin@example.com"),
        os.getenv("ADMIN_PASSWORD", "Admin123!"),
    )
