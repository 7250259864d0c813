# ledger_service/app/main.py
import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api.endpoints import health_endpoints
from app.api.endpoints import ledger_endpoints
from app.api.endpoints import position_endpoints
from app.api.endpoints import trade_endpoints
from app.api.endpoints import user_endpoints
from app.context.global_app import set_app  # For global app state
from app.core.config import settings
from app.core.exceptions import LedgerError
from app.db.session import check_connection, init_db
from app.services.market_data_client import MarketDataClient

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Crypto Ledger Service API",
    description="Wallets, spot execution, leveraged positions and trading analytics",
    version="1.0.0",
)
set_app(app)

# Include API routers
app.include_router(user_endpoints.router, prefix="/users", tags=["users"])
app.include_router(ledger_endpoints.router, prefix="/wallets", tags=["wallets"])
app.include_router(trade_endpoints.router, prefix="/trading", tags=["trading"])
app.include_router(position_endpoints.router, prefix="/positions", tags=["positions"])
app.include_router(health_endpoints.router)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


@app.on_event("startup")
def startup_event():
    logger.info("🚀 ledger_service startup logic started.")
    app.state.settings = settings

    max_retries = 3
    retry_delay = 2
    for attempt in range(max_retries):
        try:
            init_db()
            check_connection()
            logger.info("✅ Database connection verified")
            break
        except SQLAlchemyError as e:
            if attempt < max_retries - 1:
                logger.error(f"❌ Startup attempt {attempt + 1} failed, retrying in {retry_delay}s: {e}")
                time.sleep(retry_delay)
                retry_delay *= 1.5
                continue
            logger.error(f"❌ ledger_service initialization failed after {max_retries} attempts: {e}")
            raise

    app.state.market_data_client = MarketDataClient(settings)
    logger.info("✅ ledger_service startup complete.")


# Request Logging Middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    logger.info(f"📥 {request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s")
    return response


@app.on_event("shutdown")
def shutdown_event():
    logger.info("🛑 Ledger Service shutting down...")
    client = getattr(app.state, "market_data_client", None)
    if client is not None:
        client.close()
    logger.info("✅ Ledger Service shutdown complete.")


# Main Runner (for local development or explicit run)
def run_uvicorn():
    import uvicorn
    logger.info(f"🚀 Starting uvicorn server on {settings.host}:{settings.port}")
    uvicorn.run(
        app="app.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        access_log=True,
        log_level="info",
    )


if __name__ == "__main__":
    run_uvicorn()
