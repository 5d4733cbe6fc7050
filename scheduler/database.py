from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from scheduler.core import config


def build_engine(database_url: str):
    if not database_url.startswith("sqlite"):
        return create_engine(database_url)

    # SQLite connections are shared with the threaded server; an in-memory
    # database must also stay on a single connection or it disappears.
    if config.is_in_memory_database(database_url):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, connect_args={"check_same_thread": False})


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduling_schema_checked = False


def ensure_scheduling_schema() -> None:
    global _scheduling_schema_checked

    if _scheduling_schema_checked:
        return

    with _schema_lock:
        if _scheduling_schema_checked:
            return

        inspector = inspect(engine)
        table_names = set(inspector.get_table_names())

        if not {'slots', 'appointments'} <= table_names:
            _scheduling_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text('CREATE UNIQUE INDEX IF NOT EXISTS uq_slots_provider_start ON slots(provider_id, start)')
            )
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_confirmed_provider_start '
                    "ON appointments(provider_id, start) WHERE status = 'confirmed'"
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_slots_status_start ON slots(status, start)')
            )

        _scheduling_schema_checked = True


def check_database() -> bool:
    try:
        with engine.connect() as connection:
            connection.execute(text('SELECT 1'))
    except SQLAlchemyError:
        return False
    return True
