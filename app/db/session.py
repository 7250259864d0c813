# ledger_service/app/db/session.py
import logging
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite gets a busy timeout and cross-thread access."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(database_url, echo=echo, future=True, pool_pre_ping=True, connect_args=connect_args)


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autocommit=False, autoflush=False, expire_on_commit=False)


sync_engine = build_engine(settings.database_url, settings.sql_echo)
SessionLocal = build_session_factory(sync_engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create all ledger tables on the given engine."""
    # Model modules register themselves on Base.metadata when imported
    from app.models import (  # noqa: F401
        ledger_event_model,
        order_model,
        position_model,
        trade_model,
        transaction_model,
        user_model,
        wallet_model,
    )

    engine = bind or sync_engine
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")


def check_connection(bind: Optional[Engine] = None) -> bool:
    engine = bind or sync_engine
    with engine.connect() as conn:
        return conn.execute(text("SELECT 1")).scalar() == 1
