"""Load demo providers and a week of open slots.

Usage:
    python -m scheduler.seed
"""
import logging
import sys
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduler.database import Base, SessionLocal, engine, ensure_scheduling_schema
from scheduler.models.appointment import Appointment  # noqa: F401  registers the table
from scheduler.models.provider import Provider
from scheduler.models.slot import SLOT_OPEN, Slot

logger = logging.getLogger(__name__)

PROVIDERS = [
    {"id": "p1", "doctor": "Dr. Amy Kim", "specialty": "Cardiology", "location": "Dallas", "rating": 4.8},
    {"id": "p2", "doctor": "Dr. Ravi Patel", "specialty": "Cardiology", "location": "Plano", "rating": 4.7},
    {"id": "p3", "doctor": "Dr. Sophia Nguyen", "specialty": "Cardiology", "location": "Frisco", "rating": 4.9},
]
SLOT_TIMES = [time(10, 0), time(13, 0), time(15, 30)]
SEED_DAYS = 5


def seed_database(db: Session, today: date | None = None) -> tuple[int, int]:
    """Upsert providers and add missing slots; returns (providers, new slots)."""
    today = today or datetime.now(timezone.utc).date()
    created_slots = 0

    try:
        for data in PROVIDERS:
            db.merge(Provider(**data))
        db.flush()

        for offset in range(1, SEED_DAYS + 1):
            day = today + timedelta(days=offset)
            for slot_time in SLOT_TIMES:
                start = datetime.combine(day, slot_time)
                for data in PROVIDERS:
                    exists = db.query(Slot.id).filter(
                        Slot.provider_id == data["id"],
                        Slot.start == start,
                    ).first()
                    if exists:
                        continue
                    db.add(Slot(provider_id=data["id"], start=start, status=SLOT_OPEN))
                    created_slots += 1

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    return len(PROVIDERS), created_slots


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    try:
        Base.metadata.create_all(bind=engine)
        ensure_scheduling_schema()
        db = SessionLocal()
        try:
            providers, slots = seed_database(db)
        finally:
            db.close()
    except SQLAlchemyError:
        logger.exception("Seeding failed. Check DATABASE_URL.")
        sys.exit(1)

    print(f"Seed complete: {providers} providers, {slots} new slots")


if __name__ == "__main__":
    main()
