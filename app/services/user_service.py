# ledger_service/app/services/user_service.py
import hashlib
import logging
import os
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import Settings, settings as default_settings
from app.core.enums import TransactionType
from app.core.exceptions import NotFoundError, ValidationError
from app.models.user_model import UserModel
from app.services.ledger_service import LedgerService
from app.services.wallet_service import WalletService
from app.utils.transaction import run_atomic

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 200_000


def hash_password(password: str, salt: Optional[bytes] = None) -> str:
    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt.hex()}${digest.hex()}"


class UserService:
    def __init__(self, db: Session, config: Optional[Settings] = None):
        self.db = db
        self.config = config or default_settings
        self.wallets = WalletService(db, self.config)
        self.ledger = LedgerService(db)

    def register_user(self, email: str, username: str, password: str) -> UserModel:
        """Create the user, one wallet per supported currency, and the demo balances."""
        email = (email or "").strip().lower()
        username = (username or "").strip()
        if "@" not in email:
            raise ValidationError("A valid email is required", field="email")
        if not 3 <= len(username) <= 20:
            raise ValidationError("username must be 3 to 20 characters", field="username")
        if len(password or "") < 6:
            raise ValidationError("password must be at least 6 characters", field="password")

        def _register() -> UserModel:
            existing = (
                self.db.query(UserModel)
                .filter(or_(UserModel.email == email, UserModel.username == username))
                .first()
            )
            if existing is not None:
                raise ValidationError("User already exists", field="email")

            user = UserModel(
                email=email,
                username=username,
                password_hash=hash_password(password),
                is_verified=True,
            )
            self.db.add(user)
            try:
                self.db.flush()
            except IntegrityError:
                # Lost a race with a concurrent registration of the same email or username
                logger.warning(f"Registration collided on unique email/username: {email}")
                raise ValidationError("User already exists", field="email")

            self.wallets.create_wallets(user.id, self.config.supported_currencies)
            for currency, amount in self.config.initial_balances.items():
                if amount <= 0 or currency not in self.config.supported_currencies:
                    continue
                self.wallets.adjust(user.id, currency, delta_available=amount)
                self.ledger.record_transaction(
                    user.id, TransactionType.DEPOSIT, currency, amount, description="Initial demo balance"
                )
            return user

        user = run_atomic(self.db, _register, "registration")
        logger.info(f"New user registered: {user.id} ({email})")
        return user

    def get_profile(self, user_id: int) -> UserModel:
        user = self.db.query(UserModel).filter_by(id=user_id).first()
        if user is None:
            raise NotFoundError("User", user_id)
        return user
