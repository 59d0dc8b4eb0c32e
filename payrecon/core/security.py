"""JWT helpers for operators and API-key checks for internal callers."""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from payrecon.core.config import Settings
from payrecon.interfaces.http.deps.database import get_app_settings, get_db_session
from payrecon.modules.accounts import Account as AccountDomain, AccountService
from payrecon.schemas import TokenData

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Internal-Api-Key"

bearer_scheme = HTTPBearer()
api_key_scheme = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


def create_access_token(
    settings: Settings,
    account_id: str,
    username: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    expire_delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": account_id,
        "username": username,
        "role": role,
        "exp": datetime.now(timezone.utc) + expire_delta,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(settings: Settings, token: str) -> TokenData:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials") from exc

    account_id = payload.get("sub")
    username = payload.get("username")
    role = payload.get("role")
    if not all([account_id, username, role]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")
    return TokenData(account_id=account_id, username=username, role=role)


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
    db: AsyncSession = Depends(get_db_session),
) -> AccountDomain:
    token_data = decode_access_token(settings, credentials.credentials)
    account = await AccountService.with_session(db).get_by_id(token_data.account_id)
    if account is None or not account.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account missing or disabled")
    return account


async def get_current_operator(account: AccountDomain = Depends(get_current_account)) -> AccountDomain:
    if not account.is_operator():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Operator role required")
    return account


async def require_internal_client(
    request: Request,
    api_key: Optional[str] = Depends(api_key_scheme),
    settings: Settings = Depends(get_app_settings),
) -> str:
    """Storefront backends and webhook relays authenticate with a shared key."""
    if not api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Missing {API_KEY_HEADER} header")
    for candidate in settings.security.internal_api_keys:
        if secrets.compare_digest(api_key.encode("utf-8"), candidate.encode("utf-8")):
            return request.headers.get("X-Service-Name", "internal")
    logger.warning("Rejected internal API key ending ...%s", api_key[-4:])
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid internal API key")
