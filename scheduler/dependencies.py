from fastapi import Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduler.core import config
from scheduler.core.errors import SchedulingError
from scheduler.database import SessionLocal, ensure_scheduling_schema
from scheduler.services.ledger import SchedulingLedger


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_ledger(db: Session = Depends(get_db)) -> SchedulingLedger:
    return SchedulingLedger(db, require_slot=config.REQUIRE_PUBLISHED_SLOT)


def ensure_database_ready() -> None:
    try:
        ensure_scheduling_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL.',
        ) from exc


def as_http_error(exc: SchedulingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)
