"""Initialize the database and seed the admin account."""

from pathlib import Path

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

import repositories.db_models  # noqa: F401  (registers tables on Base.metadata)
from authentication.auth import get_password_hash
from models.config import settings
from repositories.database import Base, SessionLocal, engine
from repositories.db_models import MembershipTier, User, UserRole
from services import forum_rules


def create_tables(bind: Engine = engine) -> None:
    """Create every table, making the SQLite data directory first."""
    if bind.url.get_backend_name() == "sqlite" and bind.url.database not in (
        None,
        "",
        ":memory:",
    ):
        Path(bind.url.database).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=bind)


def seed_admin(db: Session) -> bool:
    """
    Create the admin account from ADMIN_EMAIL/ADMIN_PASSWORD if it is missing.

    Returns:
        True if an account was created
    """
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        return False

    email = settings.ADMIN_EMAIL.strip().lower()
    if db.query(User).filter(User.email == email).first():
        return False

    admin = User(
        name=settings.ADMIN_NAME,
        email=email,
        hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
        role=UserRole.ADMIN,
    )
    forum_rules.add_badge(admin, MembershipTier.BRONZE)
    db.add(admin)
    db.commit()
    return True


def init_db() -> None:
    """Initialize the database with default data."""
    create_tables()
    print("[OK] Tables created")

    db = SessionLocal()
    try:
        if seed_admin(db):
            print("[OK] Admin user created")
            print(f"  Email: {settings.ADMIN_EMAIL}")
            print("  Password: (from ADMIN_PASSWORD in .env)")
            print("  IMPORTANT: Change this password in production!")
        elif not settings.ADMIN_EMAIL:
            print("[SKIP] ADMIN_EMAIL not set; no admin user seeded")

        print("\n[OK] Database initialization complete!")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    init_db()
