# ledger_service/app/context/global_app.py
from fastapi import FastAPI, HTTPException
from typing import Optional

_app_instance: Optional[FastAPI] = None

def set_app(app: FastAPI):
    global _app_instance
    _app_instance = app

def get_app() -> FastAPI:
    if _app_instance is None:
        raise RuntimeError("Global app instance has not been set yet.")
    return _app_instance

# Market data client from app.state
def get_market_data_client(app: Optional[FastAPI] = None):
    if app is None:
        app = get_app()
    if getattr(app.state, "market_data_client", None) is not None:
        return app.state.market_data_client
    raise HTTPException(status_code=500, detail="Market data client not initialized in app.state")
