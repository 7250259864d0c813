# ledger_service/app/models/user_model.py
from sqlalchemy import Boolean, Column, DateTime, Integer, String

from app.db.session import Base
from app.utils.safe_converters import utcnow


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, nullable=False)
    username = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    bio = Column(String, default="")
    avatar = Column(String, default="")
    is_verified = Column(Boolean, default=False)
    two_factor_enabled = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
