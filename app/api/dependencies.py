# ledger_service/app/api/dependencies.py
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import LedgerError
from app.db.session import get_db
from app.services.analytics_service import AnalyticsService
from app.services.notification_service import LedgerNotifier
from app.services.position_service import PositionService
from app.services.trade_service import TradeService
from app.services.user_service import UserService
from app.services.wallet_service import WalletService
from app.services.ledger_service import LedgerService


def get_current_user_id(x_user_id: int = Header(..., alias="X-User-Id", gt=0)) -> int:
    """Identity is asserted by the upstream auth provider and trusted as-is."""
    return x_user_id


def get_notifier() -> LedgerNotifier:
    return LedgerNotifier(settings)


def get_wallet_service(db: Session = Depends(get_db), notifier: LedgerNotifier = Depends(get_notifier)):
    return WalletService(db, settings, notifier)


def get_ledger_service(db: Session = Depends(get_db)):
    return LedgerService(db)


def get_trade_service(db: Session = Depends(get_db), notifier: LedgerNotifier = Depends(get_notifier)):
    return TradeService(db, settings, notifier)


def get_position_service(db: Session = Depends(get_db), notifier: LedgerNotifier = Depends(get_notifier)):
    return PositionService(db, settings, notifier)


def get_analytics_service(db: Session = Depends(get_db)):
    return AnalyticsService(db)


def get_user_service(db: Session = Depends(get_db)):
    return UserService(db, settings)


def ledger_http_error(e: LedgerError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.to_dict())
