# ledger_service/app/services/position_service.py
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.config import Settings, settings as default_settings
from app.core.enums import (
    LedgerEvent,
    OrderStatus,
    OrderType,
    PositionStatus,
    PositionType,
    TradeSide,
    TransactionType,
)
from app.core.exceptions import InsufficientFundsError, NotFoundError, ValidationError
from app.models.order_model import OrderModel
from app.models.position_model import PositionModel
from app.services.ledger_service import LedgerService
from app.services.notification_service import LedgerNotifier
from app.services.wallet_service import WalletService
from app.utils.safe_converters import normalize_code, quantize_amount, safe_convert_decimal, utcnow
from app.utils.transaction import run_atomic

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class ClosePositionResult:
    position: PositionModel
    pnl: Decimal
    credited: Decimal


class PositionService:
    """
    Leveraged positions margined in the quote currency.

    Opening moves margin from available to locked and charges a fee on the
    margin. Closing releases that margin exactly once, together with the
    realized PnL.
    """

    def __init__(self, db: Session, config: Optional[Settings] = None, notifier: Optional[LedgerNotifier] = None):
        self.db = db
        self.config = config or default_settings
        self.notifier = notifier or LedgerNotifier(self.config)
        self.wallets = WalletService(db, self.config, self.notifier)
        self.ledger = LedgerService(db)

    @staticmethod
    def _positive(value, field: str, required: bool = True) -> Optional[Decimal]:
        converted = safe_convert_decimal(value)
        if converted is None:
            if value is not None and value != "":
                raise ValidationError(f"{field} must be a finite number", field=field)
            if required:
                raise ValidationError(f"{field} is required", field=field)
            return None
        if converted <= ZERO:
            raise ValidationError(f"{field} must be greater than zero", field=field)
        return converted

    def calculate_margin(self, amount: Decimal, entry_price: Decimal, leverage: int):
        margin = quantize_amount(amount * entry_price / Decimal(leverage))
        fee = quantize_amount(margin * self.config.fee_rate)
        return margin, fee

    @staticmethod
    def calculate_pnl(position_type: str, entry_price: Decimal, current_price: Decimal,
                      size: Decimal, leverage: int) -> Decimal:
        direction = Decimal(1) if PositionType(position_type) == PositionType.LONG else Decimal(-1)
        return quantize_amount((current_price - entry_price) * size * direction * Decimal(leverage))

    def open_position(
        self,
        user_id: int,
        symbol: str,
        position_type,
        amount,
        leverage: int,
        entry_price,
        order_type=OrderType.MARKET,
        stop_loss=None,
        take_profit=None,
    ) -> PositionModel:
        symbol = normalize_code(symbol)
        if not symbol:
            raise ValidationError("symbol is required", field="symbol")
        try:
            position_type = PositionType(position_type)
        except ValueError:
            raise ValidationError(f"Unknown position type: {position_type}", field="type")
        try:
            order_type = OrderType(order_type)
        except ValueError:
            raise ValidationError(f"Unknown order type: {order_type}", field="order_type")
        if isinstance(leverage, bool) or not isinstance(leverage, int) or not 1 <= leverage <= self.config.max_leverage:
            raise ValidationError(
                f"leverage must be an integer between 1 and {self.config.max_leverage}", field="leverage"
            )
        amount = quantize_amount(self._positive(amount, "amount"))
        if amount <= ZERO:
            raise ValidationError("amount is below the smallest tradable unit", field="amount")
        entry_price = self._positive(entry_price, "entry_price")
        stop_loss = self._positive(stop_loss, "stop_loss", required=False)
        take_profit = self._positive(take_profit, "take_profit", required=False)

        margin, fee = self.calculate_margin(amount, entry_price, leverage)
        quote = self.config.quote_currency

        def _open() -> PositionModel:
            self.wallets.adjust(user_id, quote, delta_available=-(margin + fee), delta_locked=margin)
            position = PositionModel(
                user_id=user_id,
                symbol=symbol,
                type=position_type.value,
                size=amount,
                entry_price=entry_price,
                current_price=entry_price,
                leverage=leverage,
                margin=margin,
                unrealized_pnl=ZERO,
                realized_pnl=ZERO,
                status=PositionStatus.OPEN.value,
                stop_loss=stop_loss,
                take_profit=take_profit,
            )
            self.db.add(position)
            self.db.flush()

            if order_type != OrderType.MARKET:
                self.db.add(OrderModel(
                    user_id=user_id,
                    position_id=position.id,
                    symbol=symbol,
                    type=order_type.value,
                    side=(TradeSide.BUY if position_type == PositionType.LONG else TradeSide.SELL).value,
                    amount=amount,
                    price=entry_price,
                    status=OrderStatus.PENDING.value,
                ))
                self.db.flush()

            self.ledger.record_transaction(
                user_id, TransactionType.FEE, quote, -fee,
                reference_id=position.id, description=f"Position open fee ({symbol} {position_type.value})",
            )
            return position

        try:
            position = run_atomic(self.db, _open, "position open")
        except InsufficientFundsError as e:
            logger.warning(f"Position rejected: user {user_id} {position_type.value} {amount} {symbol} x{leverage}: {e.message}")
            raise

        logger.info(
            f"Position opened: user {user_id} {position_type.value} {amount} {symbol} x{leverage} "
            f"at {entry_price} (position {position.id})"
        )
        self.notifier.publish(LedgerEvent.POSITION_OPENED, user_id, position.to_dict(), position.id)
        return position

    def close_position(self, user_id: int, position_id: int, current_price) -> ClosePositionResult:
        current_price = self._positive(current_price, "current_price")
        quote = self.config.quote_currency

        def _close() -> ClosePositionResult:
            position = (
                self.db.query(PositionModel)
                .filter_by(id=position_id, user_id=user_id)
                .populate_existing()
                .first()
            )
            if position is None or position.status != PositionStatus.OPEN.value:
                raise NotFoundError("Position", position_id, "Open position not found")

            pnl = self.calculate_pnl(
                position.type, position.entry_price, current_price, position.size, position.leverage
            )
            # Status guard and flip in one statement: a concurrent close matches zero rows
            flipped = self.db.execute(
                update(PositionModel)
                .where(
                    PositionModel.id == position_id,
                    PositionModel.user_id == user_id,
                    PositionModel.status == PositionStatus.OPEN.value,
                )
                .values(
                    status=PositionStatus.CLOSED.value,
                    realized_pnl=pnl,
                    unrealized_pnl=ZERO,
                    current_price=current_price,
                    updated_at=utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            if flipped.rowcount != 1:
                raise NotFoundError("Position", position_id, "Open position not found")

            margin = position.margin
            wallet = self.wallets.get_wallet(user_id, quote, for_update=True)
            available = wallet.available_balance if wallet is not None else ZERO
            credit = margin + pnl
            if available + credit < ZERO:
                # Loss beyond margin and free balance is absorbed by the house
                credit = -available
            self.wallets.adjust(user_id, quote, delta_available=credit, delta_locked=-margin)

            self.ledger.record_transaction(
                user_id, TransactionType.PNL, quote, credit - margin,
                reference_id=position.id, description=f"Realized PnL ({position.symbol} {position.type})",
            )
            self.db.refresh(position)
            return ClosePositionResult(position=position, pnl=pnl, credited=credit)

        try:
            result = run_atomic(self.db, _close, "position close")
        except NotFoundError:
            logger.warning(f"Close rejected: position {position_id} of user {user_id} is not open")
            raise

        logger.info(
            f"Position closed: user {user_id} position {position_id} at {current_price}, pnl {result.pnl}"
        )
        self.notifier.publish(
            LedgerEvent.POSITION_CLOSED, user_id,
            {**result.position.to_dict(), "pnl": str(result.pnl)}, position_id,
        )
        return result

    def cancel_order(self, user_id: int, order_id: int) -> OrderModel:
        def _cancel() -> OrderModel:
            cancelled = self.db.execute(
                update(OrderModel)
                .where(
                    OrderModel.id == order_id,
                    OrderModel.user_id == user_id,
                    OrderModel.status == OrderStatus.PENDING.value,
                )
                .values(status=OrderStatus.CANCELLED.value, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if cancelled.rowcount != 1:
                raise NotFoundError("Order", order_id, "Pending order not found")
            return self.db.query(OrderModel).filter_by(id=order_id).populate_existing().one()

        try:
            order = run_atomic(self.db, _cancel, "order cancel")
        except NotFoundError:
            logger.warning(f"Cancel rejected: order {order_id} of user {user_id} is not pending")
            raise

        logger.info(f"Order cancelled: user {user_id} order {order_id}")
        self.notifier.publish(LedgerEvent.ORDER_CANCELLED, user_id, order.to_dict(), order_id)
        return order

    def get_position(self, user_id: int, position_id: int) -> PositionModel:
        position = self.db.query(PositionModel).filter_by(id=position_id, user_id=user_id).first()
        if position is None:
            raise NotFoundError("Position", position_id)
        return position

    def list_positions(self, user_id: int, status: Optional[PositionStatus] = PositionStatus.OPEN) -> List[PositionModel]:
        query = self.db.query(PositionModel).filter(PositionModel.user_id == user_id)
        if status is not None:
            query = query.filter(PositionModel.status == PositionStatus(status).value)
        return query.order_by(PositionModel.created_at.desc(), PositionModel.id.desc()).all()

    def list_orders(self, user_id: int, status: Optional[OrderStatus] = None) -> List[OrderModel]:
        query = self.db.query(OrderModel).filter(OrderModel.user_id == user_id)
        if status is not None:
            query = query.filter(OrderModel.status == OrderStatus(status).value)
        return query.order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).all()
