# ledger_service/app/models/ledger_event_model.py
from sqlalchemy import Column, DateTime, Integer, String, Text

from app.db.session import Base
from app.utils.safe_converters import utcnow


class LedgerEventModel(Base):
    __tablename__ = "ledger_events"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    event_type = Column(String, nullable=False)
    reference_id = Column(Integer, nullable=True)
    payload = Column(Text, nullable=True)  # JSON
    timestamp = Column(DateTime, default=utcnow)
