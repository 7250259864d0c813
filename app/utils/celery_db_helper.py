# ledger_service/app/utils/celery_db_helper.py
from sqlalchemy.orm import Session

from app.db.session import SessionLocal


def get_celery_db_session() -> Session:
    """
    Creates a synchronous database session specifically for Celery tasks.
    This always returns an actual Session instance, not a sessionmaker.
    """
    return SessionLocal()
