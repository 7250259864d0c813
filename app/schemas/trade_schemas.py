# ledger_service/app/schemas/trade_schemas.py
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional
from app.core.enums import TradeSide, Timeframe

class TradeOrder(BaseModel):
    symbol: str = Field(min_length=1, max_length=20)
    side: TradeSide
    amount: Decimal = Field(gt=0)
    price: Decimal = Field(gt=0)

class TradeSchema(BaseModel):
    id: int
    user_id: int
    symbol: str
    side: str
    amount: Decimal
    price: Decimal
    total: Decimal
    fee: Decimal
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TradingStatsSchema(BaseModel):
    timeframe: Timeframe
    total_trades: int
    total_pnl: Decimal
    total_bought: Decimal
    total_sold: Decimal
    total_fees: Decimal
    avg_trade_size: Decimal
    total_volume: Decimal
    best_trade: Decimal
    worst_trade: Decimal
    winning_trades: int
    losing_trades: int
    win_rate: Decimal

    class Config:
        from_attributes = True
