# ledger_service/app/schemas/order_schema.py
from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional

class OrderSchema(BaseModel):
    id: int
    user_id: int
    position_id: Optional[int] = None
    symbol: str
    type: str
    side: str
    amount: Decimal
    price: Optional[Decimal] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
