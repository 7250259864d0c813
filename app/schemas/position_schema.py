# ledger_service/app/schemas/position_schema.py
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional
from app.core.enums import OrderType, PositionType

class OpenPositionRequest(BaseModel):
    symbol: str = Field(min_length=1, max_length=20)
    type: PositionType
    amount: Decimal = Field(gt=0)
    leverage: int = Field(default=1, ge=1, le=100)
    entry_price: Decimal = Field(gt=0)
    order_type: OrderType = OrderType.MARKET
    stop_loss: Optional[Decimal] = Field(default=None, gt=0)
    take_profit: Optional[Decimal] = Field(default=None, gt=0)

class ClosePositionRequest(BaseModel):
    current_price: Optional[Decimal] = Field(default=None, gt=0)

class PositionSchema(BaseModel):
    id: int
    user_id: int
    symbol: str
    type: str
    size: Decimal
    entry_price: Decimal
    current_price: Optional[Decimal] = None
    leverage: int
    margin: Decimal
    unrealized_pnl: Decimal
    realized_pnl: Decimal
    status: str
    stop_loss: Optional[Decimal] = None
    take_profit: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ClosePositionResponse(BaseModel):
    position: PositionSchema
    pnl: Decimal
    credited: Decimal

    class Config:
        from_attributes = True
