# ledger_service/app/services/trade_service.py
import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import Settings, settings as default_settings
from app.core.enums import LedgerEvent, TradeSide, TradeStatus, TransactionType
from app.core.exceptions import InsufficientFundsError, ValidationError
from app.models.trade_model import TradeModel
from app.services.ledger_service import LedgerService, validate_page
from app.services.notification_service import LedgerNotifier
from app.services.wallet_service import WalletService
from app.utils.safe_converters import normalize_code, quantize_amount, safe_convert_decimal
from app.utils.transaction import run_atomic

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
MAX_SYMBOL_LENGTH = 20


class TradeService:
    """Spot execution against the house: settles a buy or sell on the user's wallets."""

    def __init__(self, db: Session, config: Optional[Settings] = None, notifier: Optional[LedgerNotifier] = None):
        self.db = db
        self.config = config or default_settings
        self.notifier = notifier or LedgerNotifier(self.config)
        self.wallets = WalletService(db, self.config, self.notifier)
        self.ledger = LedgerService(db)

    def _validate_order(self, symbol: str, side, amount, price) -> Tuple[str, TradeSide, Decimal, Decimal]:
        symbol = normalize_code(symbol)
        if not symbol or len(symbol) > MAX_SYMBOL_LENGTH or not symbol.isalnum():
            raise ValidationError("symbol must be a non-empty alphanumeric code", field="symbol")
        if symbol == self.config.quote_currency:
            raise ValidationError(f"Cannot trade {symbol} against itself", field="symbol")
        try:
            side = TradeSide(side)
        except ValueError:
            raise ValidationError(f"Unknown side: {side}", field="side")

        amount = safe_convert_decimal(amount)
        price = safe_convert_decimal(price)
        if amount is None or amount <= ZERO:
            raise ValidationError("amount must be greater than zero", field="amount")
        if price is None or price <= ZERO:
            raise ValidationError("price must be greater than zero", field="price")
        amount = quantize_amount(amount)
        if amount <= ZERO:
            raise ValidationError("amount is below the smallest tradable unit", field="amount")
        return symbol, side, amount, price

    def calculate_costs(self, amount: Decimal, price: Decimal) -> Tuple[Decimal, Decimal]:
        """Notional and fee; the fee is always charged on the notional, whatever the side."""
        total = quantize_amount(amount * price)
        fee = quantize_amount(total * self.config.fee_rate)
        return total, fee

    def _record_trade(self, user_id: int, symbol: str, side: TradeSide, amount: Decimal,
                      price: Decimal, total: Decimal, fee: Decimal) -> TradeModel:
        trade = TradeModel(
            user_id=user_id,
            symbol=symbol,
            side=side.value,
            amount=amount,
            price=price,
            total=total,
            fee=fee,
            status=TradeStatus.COMPLETED.value,
        )
        self.db.add(trade)
        self.db.flush()
        return trade

    def execute_order(self, user_id: int, symbol: str, side, amount, price) -> TradeModel:
        symbol, side, amount, price = self._validate_order(symbol, side, amount, price)
        total, fee = self.calculate_costs(amount, price)
        quote = self.config.quote_currency

        def _execute() -> TradeModel:
            if side == TradeSide.BUY:
                self.wallets.adjust(user_id, quote, delta_available=-(total + fee))
                self.wallets.adjust(user_id, symbol, delta_available=amount, create_missing=True)
            else:
                self.wallets.adjust(user_id, symbol, delta_available=-amount)
                self.wallets.adjust(user_id, quote, delta_available=total - fee, create_missing=True)

            trade = self._record_trade(user_id, symbol, side, amount, price, total, fee)
            self.ledger.record_transaction(
                user_id,
                TransactionType.TRADE,
                symbol,
                amount if side == TradeSide.BUY else -amount,
                reference_id=trade.id,
            )
            return trade

        try:
            trade = run_atomic(self.db, _execute, "spot order")
        except InsufficientFundsError as e:
            logger.warning(f"Order rejected: user {user_id} {side.value} {amount} {symbol} at {price}: {e.message}")
            raise

        logger.info(f"Trade executed: {user_id} {side.value} {amount} {symbol} at {price} (trade {trade.id})")
        self.notifier.publish(LedgerEvent.TRADE_EXECUTED, user_id, trade.to_dict(), trade.id)
        return trade

    def list_trades(self, user_id: int, limit: int = 50, offset: int = 0) -> List[TradeModel]:
        validate_page(limit, offset)
        return (
            self.db.query(TradeModel)
            .filter(TradeModel.user_id == user_id)
            .order_by(TradeModel.created_at.desc(), TradeModel.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
