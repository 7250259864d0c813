# ledger_service/app/api/endpoints/user_endpoints.py
from fastapi import APIRouter, Depends

from app.api.dependencies import get_current_user_id, get_user_service, ledger_http_error
from app.core.exceptions import LedgerError
from app.schemas.user_schema import RegisterRequest, UserSchema
from app.services.user_service import UserService

router = APIRouter()

@router.post("/register", response_model=UserSchema, status_code=201)
def register_user(
    register_request: RegisterRequest,
    user_service: UserService = Depends(get_user_service),
):
    """Create an account with its wallets and demo balances"""
    try:
        return user_service.register_user(
            register_request.email, register_request.username, register_request.password
        )
    except LedgerError as e:
        raise ledger_http_error(e)

@router.get("/profile", response_model=UserSchema)
def get_profile(
    user_id: int = Depends(get_current_user_id),
    user_service: UserService = Depends(get_user_service),
):
    try:
        return user_service.get_profile(user_id)
    except LedgerError as e:
        raise ledger_http_error(e)
