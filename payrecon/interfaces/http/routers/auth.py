"""Authentication endpoints for the operator console."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from payrecon.core.config import Settings
from payrecon.core.security import create_access_token, get_current_operator
from payrecon.interfaces.http.deps import get_app_settings, get_db_session
from payrecon.modules.accounts import Account as AccountDomain, AccountService
from payrecon.schemas import AccountLoginResponse, AccountResponse, LoginRequest

router = APIRouter()


@router.post("/login", response_model=AccountLoginResponse, summary="Operator login")
async def operator_login(
    payload: LoginRequest,
    settings: Settings = Depends(get_app_settings),
    db: AsyncSession = Depends(get_db_session),
) -> AccountLoginResponse:
    account_service = AccountService.with_session(db)
    account = await account_service.authenticate(payload.username, payload.password)
    if account is None or not account.is_operator():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")

    await account_service.set_last_login(account.id)
    await db.commit()

    token = create_access_token(settings, account.id, account.username, account.role)
    return AccountLoginResponse(
        access_token=token,
        account_id=account.id,
        username=account.username,
        role=account.role,
    )


@router.get("/me", response_model=AccountResponse, summary="Current operator")
async def current_operator(operator: AccountDomain = Depends(get_current_operator)) -> AccountResponse:
    return AccountResponse.model_validate(operator)
