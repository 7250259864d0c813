# ledger_service/app/models/trade_model.py
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String

from app.db.session import Base
from app.utils.safe_converters import utcnow


class TradeModel(Base):
    __tablename__ = "trades"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    symbol = Column(String, nullable=False)
    side = Column(String, nullable=False)
    amount = Column(Numeric(28, 8), nullable=False)
    price = Column(Numeric(28, 8), nullable=False)
    total = Column(Numeric(28, 8), nullable=False)
    fee = Column(Numeric(28, 8), nullable=False)
    status = Column(String, nullable=False, default="completed")
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_trades_user_id_created_at", "user_id", "created_at"),
        Index("idx_trades_symbol", "symbol"),
    )

    def to_dict(self):
        """Convert TradeModel instance to dictionary for Celery serialization."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "symbol": self.symbol,
            "side": self.side,
            "amount": str(self.amount),
            "price": str(self.price),
            "total": str(self.total),
            "fee": str(self.fee),
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at is not None else None,
        }
