import os
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ['LLM_API_KEY'] = ''

from scheduler.database import Base  # noqa: E402
from scheduler.models.appointment import Appointment  # noqa: E402,F401
from scheduler.models.provider import Provider  # noqa: E402
from scheduler.models.slot import SLOT_OPEN, Slot  # noqa: E402
from scheduler.services.ledger import SchedulingLedger  # noqa: E402

FIXED_NOW = datetime(2025, 1, 9, 8, 0)


@pytest.fixture
def scheduling_db():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def seeded_db(scheduling_db):
    scheduling_db.add_all([
        Provider(id='p1', doctor='Dr. Amy Kim', specialty='Cardiology', location='Dallas', rating=4.8),
        Provider(id='p2', doctor='Dr. Ravi Patel', specialty='Cardiology', location='Plano', rating=4.7),
        Provider(id='p3', doctor='Dr. Sophia Nguyen', specialty='Dermatology', location='Frisco', rating=4.9),
    ])
    scheduling_db.add_all([
        Slot(id='s1000', provider_id='p1', start=datetime(2025, 1, 10, 10, 0), status=SLOT_OPEN),
        Slot(id='s1300', provider_id='p1', start=datetime(2025, 1, 10, 13, 0), status=SLOT_OPEN),
        Slot(id='s1530', provider_id='p1', start=datetime(2025, 1, 10, 15, 30), status=SLOT_OPEN),
        Slot(id='s0800', provider_id='p1', start=datetime(2025, 1, 8, 8, 0), status=SLOT_OPEN),
        Slot(id='t1000', provider_id='p2', start=datetime(2025, 1, 10, 10, 0), status=SLOT_OPEN),
    ])
    scheduling_db.commit()
    return scheduling_db


@pytest.fixture
def ledger(seeded_db) -> SchedulingLedger:
    return SchedulingLedger(seeded_db, clock=lambda: FIXED_NOW)
