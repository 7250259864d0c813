# ledger_service/app/models/position_model.py
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String

from app.db.session import Base
from app.utils.safe_converters import utcnow


class PositionModel(Base):
    __tablename__ = "positions"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    symbol = Column(String, nullable=False)
    type = Column(String, nullable=False)
    size = Column(Numeric(28, 8), nullable=False)
    entry_price = Column(Numeric(28, 8), nullable=False)
    current_price = Column(Numeric(28, 8), nullable=False)
    leverage = Column(Integer, nullable=False, default=1)
    margin = Column(Numeric(28, 8), nullable=False)
    unrealized_pnl = Column(Numeric(28, 8), default=0)
    realized_pnl = Column(Numeric(28, 8), default=0)
    status = Column(String, nullable=False, default="open")
    stop_loss = Column(Numeric(28, 8), nullable=True)
    take_profit = Column(Numeric(28, 8), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_positions_user_id", "user_id"),
        Index("idx_positions_status", "status"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "symbol": self.symbol,
            "type": self.type,
            "size": str(self.size),
            "entry_price": str(self.entry_price),
            "current_price": str(self.current_price),
            "leverage": self.leverage,
            "margin": str(self.margin),
            "realized_pnl": str(self.realized_pnl) if self.realized_pnl is not None else None,
            "status": self.status,
        }
