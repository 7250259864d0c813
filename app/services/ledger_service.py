# ledger_service/app/services/ledger_service.py
import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.enums import TransactionStatus, TransactionType
from app.core.exceptions import ValidationError
from app.models.transaction_model import TransactionModel
from app.utils.safe_converters import normalize_code, quantize_amount

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 500


class LedgerService:
    """Append-only transaction log. Writes join the caller's open transaction."""

    def __init__(self, db: Session):
        self.db = db

    def record_transaction(
        self,
        user_id: int,
        transaction_type: TransactionType,
        currency: str,
        amount: Decimal,
        reference_id: Optional[int] = None,
        description: Optional[str] = None,
        status: TransactionStatus = TransactionStatus.COMPLETED,
    ) -> TransactionModel:
        entry = TransactionModel(
            user_id=user_id,
            type=TransactionType(transaction_type).value,
            currency=normalize_code(currency),
            amount=quantize_amount(amount),
            status=TransactionStatus(status).value,
            reference_id=reference_id,
            description=description,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def list_transactions(
        self,
        user_id: int,
        limit: int = 50,
        offset: int = 0,
        transaction_type: Optional[TransactionType] = None,
    ) -> List[TransactionModel]:
        """Newest first, optionally restricted to one transaction type."""
        validate_page(limit, offset)
        query = self.db.query(TransactionModel).filter(TransactionModel.user_id == user_id)
        if transaction_type is not None:
            query = query.filter(TransactionModel.type == TransactionType(transaction_type).value)
        return (
            query.order_by(TransactionModel.created_at.desc(), TransactionModel.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    def transactions_for_reference(self, user_id: int, reference_id: int) -> List[TransactionModel]:
        return (
            self.db.query(TransactionModel)
            .filter_by(user_id=user_id, reference_id=reference_id)
            .order_by(TransactionModel.id)
            .all()
        )


def validate_page(limit: int, offset: int) -> None:
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")
    if offset < 0:
        raise ValidationError("offset must be non-negative", field="offset")
