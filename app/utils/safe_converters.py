# ledger_service/app/utils/safe_converters.py
from datetime import datetime, timezone
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Any, Optional

AMOUNT_PRECISION = Decimal("0.00000001")


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in every created_at column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def safe_convert_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    if value is None or value == "":
        return default
    try:
        # str() first so floats keep their shortest repr instead of binary noise
        converted = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return default
    # NaN and Infinity are never valid money
    if not converted.is_finite():
        return default
    return converted


def quantize_amount(value: Decimal) -> Decimal:
    """Round to the 8 fractional digits every monetary column stores."""
    return value.quantize(AMOUNT_PRECISION, rounding=ROUND_HALF_EVEN)


def normalize_code(value: Optional[str]) -> str:
    return (value or "").strip().upper()
