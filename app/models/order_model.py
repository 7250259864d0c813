# ledger_service/app/models/order_model.py
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String

from app.db.session import Base
from app.utils.safe_converters import utcnow


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    position_id = Column(Integer, ForeignKey("positions.id"), nullable=True)
    symbol = Column(String, nullable=False)
    type = Column(String, nullable=False)
    side = Column(String, nullable=False)
    amount = Column(Numeric(28, 8), nullable=False)
    price = Column(Numeric(28, 8), nullable=True)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_orders_user_id", "user_id"),
        Index("idx_orders_status", "status"),
    )

    def to_dict(self):
        """Convert OrderModel instance to dictionary for Celery serialization."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "position_id": self.position_id,
            "symbol": self.symbol,
            "type": self.type,
            "side": self.side,
            "amount": str(self.amount),
            "price": str(self.price) if self.price is not None else None,
            "status": self.status,
        }
