# ledger_service/app/models/wallet_model.py
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint

from app.db.session import Base
from app.utils.safe_converters import utcnow


class WalletModel(Base):
    __tablename__ = "wallets"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    currency = Column(String, nullable=False)
    available_balance = Column(Numeric(28, 8), nullable=False, default=Decimal("0"))
    locked_balance = Column(Numeric(28, 8), nullable=False, default=Decimal("0"))
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "currency"),
        CheckConstraint("available_balance >= 0", name="ck_wallet_available_non_negative"),
        CheckConstraint("locked_balance >= 0", name="ck_wallet_locked_non_negative"),
    )
    # Every UPDATE is guarded by the version it read; a lost race raises StaleDataError
    __mapper_args__ = {"version_id_col": version}
