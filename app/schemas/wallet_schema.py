# ledger_service/app/schemas/wallet_schema.py
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional

class WalletSchema(BaseModel):
    currency: str
    available_balance: Decimal
    locked_balance: Decimal
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class FundsRequest(BaseModel):
    currency: str = Field(min_length=1, max_length=20)
    amount: Decimal = Field(gt=0)

class FundsResponse(BaseModel):
    message: str
    transaction_id: int
    currency: str
    amount: Decimal
