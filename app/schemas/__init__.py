# ledger_service/app/schemas/__init__.py
from .wallet_schema import WalletSchema, FundsRequest, FundsResponse
from .transaction_schema import TransactionSchema
from .trade_schemas import TradeOrder, TradeSchema, TradingStatsSchema
from .position_schema import OpenPositionRequest, ClosePositionRequest, PositionSchema, ClosePositionResponse
from .order_schema import OrderSchema
from .user_schema import RegisterRequest, UserSchema
from .ledger_event_schema import LedgerEventSchema
