# ledger_service/app/services/analytics_service.py
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy.orm import Session

from app.core.enums import Timeframe, TradeSide
from app.core.exceptions import ValidationError
from app.models.trade_model import TradeModel
from app.utils.safe_converters import quantize_amount, utcnow

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

TIMEFRAME_WINDOWS: Dict[Timeframe, Optional[timedelta]] = {
    Timeframe.SEVEN_DAYS: timedelta(days=7),
    Timeframe.THIRTY_DAYS: timedelta(days=30),
    Timeframe.NINETY_DAYS: timedelta(days=90),
    Timeframe.ONE_YEAR: timedelta(days=365),
    Timeframe.ALL: None,
}


@dataclass
class TradingStats:
    timeframe: str
    total_trades: int = 0
    total_pnl: Decimal = ZERO
    total_bought: Decimal = ZERO
    total_sold: Decimal = ZERO
    total_fees: Decimal = ZERO
    avg_trade_size: Decimal = ZERO
    total_volume: Decimal = ZERO
    best_trade: Decimal = ZERO
    worst_trade: Decimal = ZERO
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: Decimal = ZERO

    def to_dict(self):
        return asdict(self)


def trade_cash_flow(trade: TradeModel) -> Decimal:
    """Signed quote-currency flow of one trade: sells bring cash in, buys pay out."""
    if trade.side == TradeSide.SELL.value:
        return trade.total - trade.fee
    return -(trade.total + trade.fee)


class AnalyticsService:
    """Read-only statistics over the trade ledger."""

    def __init__(self, db: Session):
        self.db = db

    def compute_stats(self, user_id: int, timeframe=Timeframe.THIRTY_DAYS, now: Optional[datetime] = None) -> TradingStats:
        try:
            timeframe = Timeframe(timeframe)
        except ValueError:
            raise ValidationError(f"Unknown timeframe: {timeframe}", field="timeframe")

        query = self.db.query(TradeModel).filter(TradeModel.user_id == user_id)
        window = TIMEFRAME_WINDOWS[timeframe]
        if window is not None:
            query = query.filter(TradeModel.created_at >= (now or utcnow()) - window)
        trades = query.order_by(TradeModel.id).all()

        stats = TradingStats(timeframe=timeframe.value)
        if not trades:
            return stats

        flows = []
        for trade in trades:
            flow = trade_cash_flow(trade)
            flows.append(flow)
            stats.total_volume += trade.total
            stats.total_fees += trade.fee
            if trade.side == TradeSide.BUY.value:
                stats.total_bought += trade.total
            else:
                stats.total_sold += trade.total
            if flow > ZERO:
                stats.winning_trades += 1
            elif flow < ZERO:
                stats.losing_trades += 1

        stats.total_trades = len(trades)
        stats.total_pnl = quantize_amount(sum(flows, ZERO))
        stats.best_trade = max(flows)
        stats.worst_trade = min(flows)
        stats.avg_trade_size = quantize_amount(stats.total_volume / stats.total_trades)
        stats.win_rate = (Decimal(stats.winning_trades) / Decimal(stats.total_trades) * 100).quantize(Decimal("0.01"))
        return stats
