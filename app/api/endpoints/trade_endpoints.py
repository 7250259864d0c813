# ledger_service/app/api/endpoints/trade_endpoints.py
from fastapi import APIRouter, Depends, Query
from typing import List

from app.api.dependencies import (
    get_analytics_service,
    get_current_user_id,
    get_trade_service,
    ledger_http_error,
)
from app.core.enums import Timeframe
from app.core.exceptions import LedgerError
from app.schemas.trade_schemas import TradeOrder, TradeSchema, TradingStatsSchema
from app.services.analytics_service import AnalyticsService
from app.services.trade_service import TradeService

router = APIRouter()

@router.post("/order", response_model=TradeSchema)
def execute_order(
    trade_order: TradeOrder,
    user_id: int = Depends(get_current_user_id),
    trade_service: TradeService = Depends(get_trade_service),
):
    """Settle a spot buy or sell at the given price"""
    try:
        return trade_service.execute_order(
            user_id, trade_order.symbol, trade_order.side, trade_order.amount, trade_order.price
        )
    except LedgerError as e:
        raise ledger_http_error(e)

@router.get("/trades", response_model=List[TradeSchema])
def list_trades(
    limit: int = Query(50),
    offset: int = Query(0),
    user_id: int = Depends(get_current_user_id),
    trade_service: TradeService = Depends(get_trade_service),
):
    try:
        return trade_service.list_trades(user_id, limit, offset)
    except LedgerError as e:
        raise ledger_http_error(e)

@router.get("/stats", response_model=TradingStatsSchema)
@router.get("/analytics", response_model=TradingStatsSchema, include_in_schema=False)
def get_stats(
    timeframe: Timeframe = Query(Timeframe.THIRTY_DAYS),
    user_id: int = Depends(get_current_user_id),
    analytics_service: AnalyticsService = Depends(get_analytics_service),
):
    try:
        stats = analytics_service.compute_stats(user_id, timeframe)
    except LedgerError as e:
        raise ledger_http_error(e)
    return TradingStatsSchema(**stats.to_dict())
