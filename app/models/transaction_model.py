# ledger_service/app/models/transaction_model.py
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String

from app.db.session import Base
from app.utils.safe_converters import utcnow


class TransactionModel(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    type = Column(String, nullable=False)
    currency = Column(String, nullable=False)
    amount = Column(Numeric(28, 8), nullable=False)  # signed
    status = Column(String, nullable=False, default="completed")
    reference_id = Column(Integer, nullable=True)  # trade id for 'trade', position id for 'fee'/'pnl'
    description = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (Index("idx_transactions_user_id_created_at", "user_id", "created_at"),)
