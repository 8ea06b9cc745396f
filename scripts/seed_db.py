"""Seed the database with a dev superadmin, an organizer and a draft event.

Run from the repository root:
    python scripts/seed_db.py

The script only needs the api src on the path, so it also works outside the app.
"""

import sys
from datetime import timedelta
from pathlib import Path

# Ensure the api src is on the path when running standalone
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "apps" / "api" / "src"))

from evops.core.clock import utcnow  # noqa: E402
from evops.core.config import settings  # noqa: E402
from evops.core.security import hash_password  # noqa: E402
from evops.db.base import Base  # noqa: E402
from evops.db.models import Event, User  # noqa: E402
from evops.db.session import SessionLocal, engine  # noqa: E402
from evops.domain.enums import EventStatus, Role  # noqa: E402

DEV_PASSWORD = "DevPassword123!"


def seed() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        existing = db.query(User).filter_by(email="admin@dev.local").first()
        if existing:
            print(f"Seed already applied: user '{existing.email}' exists. Skipping.")
            return

        admin = User(
            email="admin@dev.local",
            full_name="Dev Superadmin",
            hashed_password=hash_password(DEV_PASSWORD),
            role=Role.superadmin,
        )
        organizer = User(
            email="organizer@dev.local",
            full_name="Dev Organizer",
            hashed_password=hash_password(DEV_PASSWORD),
            role=Role.organizer,
        )
        db.add_all([admin, organizer])
        db.flush()

        event = Event(
            organizer_id=organizer.id,
            title="Dev Launch Party",
            status=EventStatus.draft,
            start_date=utcnow() + timedelta(days=30),
            budget=5000.0,
        )
        db.add(event)

        db.commit()
        print(f"Seeded user='{admin.email}' (id={admin.id}) with role=superadmin")
        print(f"Seeded user='{organizer.email}' (id={organizer.id}) with role=organizer")
        print(f"Seeded event='{event.title}' (id={event.id})")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    print(f"DATABASE_URL = {settings.DATABASE_URL}")
    seed()
    print("Done.")
