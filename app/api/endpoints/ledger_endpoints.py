# ledger_service/app/api/endpoints/ledger_endpoints.py
from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from app.api.dependencies import (
    get_current_user_id,
    get_ledger_service,
    get_wallet_service,
    ledger_http_error,
)
from app.core.enums import TransactionType
from app.core.exceptions import LedgerError
from app.schemas.transaction_schema import TransactionSchema
from app.schemas.wallet_schema import FundsRequest, FundsResponse, WalletSchema
from app.services.ledger_service import LedgerService
from app.services.wallet_service import WalletService

router = APIRouter()

@router.get("", response_model=List[WalletSchema])
def get_wallets(
    user_id: int = Depends(get_current_user_id),
    wallet_service: WalletService = Depends(get_wallet_service),
):
    """All wallets of the caller, one per currency"""
    return wallet_service.list_wallets(user_id)

@router.post("/deposit", response_model=FundsResponse)
def deposit(
    request: FundsRequest,
    user_id: int = Depends(get_current_user_id),
    wallet_service: WalletService = Depends(get_wallet_service),
):
    try:
        transaction = wallet_service.deposit(user_id, request.currency, request.amount)
    except LedgerError as e:
        raise ledger_http_error(e)
    return FundsResponse(
        message="Deposit successful",
        transaction_id=transaction.id,
        currency=transaction.currency,
        amount=transaction.amount,
    )

@router.post("/withdraw", response_model=FundsResponse)
def withdraw(
    request: FundsRequest,
    user_id: int = Depends(get_current_user_id),
    wallet_service: WalletService = Depends(get_wallet_service),
):
    try:
        transaction = wallet_service.withdraw(user_id, request.currency, request.amount)
    except LedgerError as e:
        raise ledger_http_error(e)
    return FundsResponse(
        message="Withdrawal successful",
        transaction_id=transaction.id,
        currency=transaction.currency,
        amount=-transaction.amount,
    )

@router.get("/transactions", response_model=List[TransactionSchema])
def list_transactions(
    limit: int = Query(50),
    offset: int = Query(0),
    type: Optional[TransactionType] = Query(None),
    user_id: int = Depends(get_current_user_id),
    ledger_service: LedgerService = Depends(get_ledger_service),
):
    """Transaction history, newest first"""
    try:
        return ledger_service.list_transactions(user_id, limit, offset, type)
    except LedgerError as e:
        raise ledger_http_error(e)
