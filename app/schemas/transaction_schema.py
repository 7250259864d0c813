# ledger_service/app/schemas/transaction_schema.py
from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional

class TransactionSchema(BaseModel):
    id: int
    type: str
    currency: str
    amount: Decimal
    status: str
    reference_id: Optional[int] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
