# ledger_service/app/schemas/ledger_event_schema.py
from pydantic import BaseModel
from datetime import datetime
from typing import Any, Dict, Optional
from app.core.enums import LedgerEvent

class LedgerEventSchema(BaseModel):
    user_id: int
    event_type: LedgerEvent
    reference_id: Optional[int] = None
    payload: Dict[str, Any] = {}
    timestamp: Optional[datetime] = None

    class Config:
        from_attributes = True
