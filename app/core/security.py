from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings
from app.core.exceptions import Unauthenticated
from app.crud.user import get_user_by_id
from app.db.database import Database, get_database
from app.models.user import User

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# auto_error is off so the cookie can be used when no header is sent
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/token",
    auto_error=False,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    user_id: str,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[Dict[str, Any]] = None
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    payload = {
        "sub": str(user_id),
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp()),
        "type": "access",
    }

    if additional_claims:
        payload.update(additional_claims)

    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def token_expiry(expires_delta: Optional[timedelta] = None) -> datetime:
    return datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))


def verify_token(token: str, expected_type: Optional[str] = "access") -> dict:
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
        if expected_type and payload.get("type") != expected_type:
            raise JWTError("Invalid token type")
        if not payload.get("sub"):
            raise JWTError("Token has no subject")
        return payload
    except JWTError:
        raise Unauthenticated("Invalid or expired token")


def extract_token(request: Request, bearer_token: Optional[str]) -> Optional[str]:
    """Prefer the Authorization header, fall back to the auth cookie."""
    if bearer_token:
        return bearer_token
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


async def _load_user(database: Database, user_id: str) -> Optional[User]:
    # Short-lived session, closed before the endpoint runs
    async with database.session() as session:
        return await get_user_by_id(session, user_id)


async def get_current_user(
    request: Request,
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    database: Database = Depends(get_database)
) -> User:
    token = extract_token(request, bearer_token)
    if not token:
        raise Unauthenticated()

    payload = verify_token(token)
    user = await _load_user(database, payload["sub"])
    if not user:
        raise Unauthenticated("User no longer exists")
    return user


async def get_optional_user(
    request: Request,
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    database: Database = Depends(get_database)
) -> Optional[User]:
    """Resolve the caller when a valid token is present, otherwise None."""
    token = extract_token(request, bearer_token)
    if not token:
        return None
    try:
        payload = verify_token(token)
    except Unauthenticated:
        return None
    return await _load_user(database, payload["sub"])
