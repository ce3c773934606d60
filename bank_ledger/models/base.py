"""
Persistence wiring: engine, session factory, declarative base,
and the request-scoped session helpers.

Endpoints receive a session from get_db() and wrap every write
in unit_of_work().
"""

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker, DeclarativeBase

from bank_ledger.config import get_settings

settings = get_settings()

# SQLite connections are bound to the creating thread unless told
# otherwise; FastAPI runs sync endpoints in a thread pool.
connect_args = (
    {"check_same_thread": False}
    if settings.DATABASE_URL.startswith("sqlite")
    else {}
)

# --- Engine ---
# pool_pre_ping=True tests connections before using them,
# which handles cases where the database restarted or a
# connection went stale.
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=connect_args,
)

# --- Session Factory ---
# autocommit=False means we explicitly control when changes
# are saved. A deposit, a transfer, a failed login all commit
# (or roll back) as one unit.
# autoflush=False means SQLAlchemy won't send SQL to the
# database until we explicitly flush or commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


# --- Dependency for FastAPI ---
def get_db():
    """Yield one session per request and always close it."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session):
    """
    Commit everything done inside the block, or nothing.

    Services only flush; the request boundary decides the
    transaction outcome through this helper.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
