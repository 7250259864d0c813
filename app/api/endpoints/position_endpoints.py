# ledger_service/app/api/endpoints/position_endpoints.py
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from app.api.dependencies import get_current_user_id, get_position_service, ledger_http_error
from app.context.global_app import get_market_data_client
from app.core.enums import OrderStatus, PositionStatus
from app.core.exceptions import LedgerError, NotFoundError
from app.schemas.order_schema import OrderSchema
from app.schemas.position_schema import (
    ClosePositionRequest,
    ClosePositionResponse,
    OpenPositionRequest,
    PositionSchema,
)
from app.services.market_data_client import MarketDataError
from app.services.position_service import PositionService

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("", response_model=PositionSchema)
def open_position(
    position_request: OpenPositionRequest,
    user_id: int = Depends(get_current_user_id),
    position_service: PositionService = Depends(get_position_service),
):
    """Open a leveraged position; limit and stop entries also leave a pending order"""
    try:
        return position_service.open_position(
            user_id,
            position_request.symbol,
            position_request.type,
            position_request.amount,
            position_request.leverage,
            position_request.entry_price,
            order_type=position_request.order_type,
            stop_loss=position_request.stop_loss,
            take_profit=position_request.take_profit,
        )
    except LedgerError as e:
        raise ledger_http_error(e)

@router.get("", response_model=List[PositionSchema])
def list_positions(
    status: str = Query(PositionStatus.OPEN.value, description="open, closed, liquidated or all"),
    user_id: int = Depends(get_current_user_id),
    position_service: PositionService = Depends(get_position_service),
):
    if status == "all":
        return position_service.list_positions(user_id, status=None)
    try:
        position_status = PositionStatus(status)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown position status: {status}")
    return position_service.list_positions(user_id, status=position_status)

@router.post("/{position_id}/close", response_model=ClosePositionResponse)
def close_position(
    position_id: int,
    close_request: Optional[ClosePositionRequest] = None,
    user_id: int = Depends(get_current_user_id),
    position_service: PositionService = Depends(get_position_service),
):
    """Close at the given price, or at the current market price when none is given"""
    try:
        current_price = close_request.current_price if close_request else None
        if current_price is None:
            position = position_service.get_position(user_id, position_id)
            if position.status != PositionStatus.OPEN.value:
                raise NotFoundError("Position", position_id, "Open position not found")
            try:
                current_price = get_market_data_client().get_price(position.symbol)
            except MarketDataError as e:
                logger.warning(f"No market price to close position {position_id}: {e}")
                raise HTTPException(status_code=503, detail=str(e))
        return position_service.close_position(user_id, position_id, current_price)
    except LedgerError as e:
        raise ledger_http_error(e)

@router.get("/orders", response_model=List[OrderSchema])
def list_orders(
    status: Optional[OrderStatus] = Query(None),
    user_id: int = Depends(get_current_user_id),
    position_service: PositionService = Depends(get_position_service),
):
    return position_service.list_orders(user_id, status=status)

@router.post("/orders/{order_id}/cancel", response_model=OrderSchema)
def cancel_order(
    order_id: int,
    user_id: int = Depends(get_current_user_id),
    position_service: PositionService = Depends(get_position_service),
):
    try:
        return position_service.cancel_order(user_id, order_id)
    except LedgerError as e:
        raise ledger_http_error(e)
