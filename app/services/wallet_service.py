# ledger_service/app/services/wallet_service.py
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import Settings, settings as default_settings
from app.core.enums import LedgerEvent, TransactionType
from app.core.exceptions import InsufficientFundsError, ValidationError
from app.models.transaction_model import TransactionModel
from app.models.wallet_model import WalletModel
from app.services.ledger_service import LedgerService
from app.services.notification_service import LedgerNotifier
from app.utils.safe_converters import normalize_code, quantize_amount, safe_convert_decimal
from app.utils.transaction import run_atomic

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class WalletBalance:
    currency: str
    available: Decimal
    locked: Decimal


class WalletService:
    """
    Per-user, per-currency balances.

    ``adjust`` is the only write path. It does not commit: callers group it
    with their other writes inside ``run_atomic`` so the whole logical
    operation lands or none of it does.
    """

    def __init__(self, db: Session, config: Optional[Settings] = None, notifier: Optional[LedgerNotifier] = None):
        self.db = db
        self.config = config or default_settings
        self.ledger = LedgerService(db)
        self.notifier = notifier or LedgerNotifier(self.config)

    def get_wallet(self, user_id: int, currency: str, for_update: bool = False) -> Optional[WalletModel]:
        query = self.db.query(WalletModel).filter_by(user_id=user_id, currency=normalize_code(currency))
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_balance(self, user_id: int, currency: str) -> WalletBalance:
        currency = normalize_code(currency)
        wallet = self.get_wallet(user_id, currency)
        if wallet is None:
            return WalletBalance(currency, ZERO, ZERO)
        return WalletBalance(currency, wallet.available_balance, wallet.locked_balance)

    def list_wallets(self, user_id: int) -> List[WalletModel]:
        return self.db.query(WalletModel).filter_by(user_id=user_id).order_by(WalletModel.currency).all()

    def create_wallets(self, user_id: int, currencies: Iterable[str]) -> List[WalletModel]:
        """Zero-balance wallets for each currency the user does not hold yet."""
        created = []
        for currency in currencies:
            if self.get_wallet(user_id, currency) is None:
                wallet = WalletModel(
                    user_id=user_id,
                    currency=normalize_code(currency),
                    available_balance=ZERO,
                    locked_balance=ZERO,
                )
                self.db.add(wallet)
                created.append(wallet)
        self.db.flush()
        return created

    def adjust(
        self,
        user_id: int,
        currency: str,
        delta_available: Decimal = ZERO,
        delta_locked: Decimal = ZERO,
        create_missing: bool = False,
    ) -> WalletModel:
        currency = normalize_code(currency)
        delta_available = quantize_amount(delta_available)
        delta_locked = quantize_amount(delta_locked)

        wallet = self.get_wallet(user_id, currency, for_update=True)
        if wallet is None:
            if delta_available < ZERO or delta_locked < ZERO or not create_missing:
                raise InsufficientFundsError(currency, required=-min(delta_available, delta_locked, ZERO))
            wallet = WalletModel(user_id=user_id, currency=currency, available_balance=ZERO, locked_balance=ZERO)
            self.db.add(wallet)
            self.db.flush()

        new_available = wallet.available_balance + delta_available
        new_locked = wallet.locked_balance + delta_locked
        if new_available < ZERO:
            raise InsufficientFundsError(currency, required=-delta_available)
        if new_locked < ZERO:
            raise InsufficientFundsError(
                currency, required=-delta_locked, message=f"Insufficient locked {currency} balance"
            )

        wallet.available_balance = new_available
        wallet.locked_balance = new_locked
        # Flush now so a lost version race surfaces here, inside the caller's retry scope
        self.db.flush()
        return wallet

    def _validate_funds_request(self, currency: str, amount) -> Tuple[str, Decimal]:
        currency = normalize_code(currency)
        if currency not in self.config.supported_currencies:
            raise ValidationError(f"Unsupported currency: {currency}", field="currency")
        amount = safe_convert_decimal(amount)
        if amount is None or amount <= ZERO:
            raise ValidationError("amount must be greater than zero", field="amount")
        amount = quantize_amount(amount)
        if amount <= ZERO:
            raise ValidationError("amount is below the smallest unit", field="amount")
        return currency, amount

    def deposit(self, user_id: int, currency: str, amount: Decimal) -> TransactionModel:
        currency, amount = self._validate_funds_request(currency, amount)

        def _deposit():
            self.adjust(user_id, currency, delta_available=amount, create_missing=True)
            return self.ledger.record_transaction(user_id, TransactionType.DEPOSIT, currency, amount)

        transaction = run_atomic(self.db, _deposit, "deposit")
        logger.info(f"Deposit: user {user_id} deposited {amount} {currency} (transaction {transaction.id})")
        self.notifier.publish(
            LedgerEvent.FUNDS_DEPOSITED, user_id, {"currency": currency, "amount": str(amount)}, transaction.id
        )
        return transaction

    def withdraw(self, user_id: int, currency: str, amount: Decimal) -> TransactionModel:
        currency, amount = self._validate_funds_request(currency, amount)

        def _withdraw():
            self.adjust(user_id, currency, delta_available=-amount)
            return self.ledger.record_transaction(user_id, TransactionType.WITHDRAWAL, currency, -amount)

        try:
            transaction = run_atomic(self.db, _withdraw, "withdrawal")
        except InsufficientFundsError:
            logger.warning(f"Withdrawal rejected: user {user_id} lacks {amount} {currency}")
            raise
        logger.info(f"Withdrawal: user {user_id} withdrew {amount} {currency} (transaction {transaction.id})")
        self.notifier.publish(
            LedgerEvent.FUNDS_WITHDRAWN, user_id, {"currency": currency, "amount": str(amount)}, transaction.id
        )
        return transaction
