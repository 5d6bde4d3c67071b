"""
Passwords, signed tokens and request authentication.
"""
import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Iterable, Optional, Tuple

import structlog
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from database import as_utc, get_db, now_utc, to_object_id
from errors import Forbidden, InvalidToken, TokenExpired, Unauthenticated, ValidationError
from schemas import UserRole
from settings import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ALGORITHM,
    API_PREFIX,
    BCRYPT_ROUNDS,
    JWT_REFRESH_SECRET,
    JWT_SECRET,
    PASSWORD_RESET_TTL_MINUTES,
    REFRESH_TOKEN_EXPIRE_DAYS,
)

logger = structlog.get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{API_PREFIX}/auth/login", auto_error=False)

ACCESS_COOKIE = "token"
REFRESH_COOKIE = "refreshToken"


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def _create_token(user_id, secret: str, expires_delta: timedelta, issued_at: Optional[datetime] = None) -> str:
    issued = issued_at or now_utc()
    claims = {"sub": str(user_id), "iat": issued, "exp": issued + expires_delta}
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def create_access_token(user_id, issued_at: Optional[datetime] = None) -> str:
    return _create_token(user_id, JWT_SECRET, timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES), issued_at)


def create_refresh_token(user_id, issued_at: Optional[datetime] = None) -> str:
    return _create_token(user_id, JWT_REFRESH_SECRET, timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS), issued_at)


def _decode(token: str, secret: str) -> dict:
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpired("Your session has expired. Please log in again")
    except JWTError:
        raise InvalidToken("Invalid token. Please log in again")
    if not payload.get("sub"):
        raise InvalidToken("Invalid token. Please log in again")
    return payload


def decode_access_token(token: str) -> dict:
    return _decode(token, JWT_SECRET)


def decode_refresh_token(token: str) -> dict:
    return _decode(token, JWT_REFRESH_SECRET)


def hash_token(raw: str) -> str:
    return hashlib.sha256(raw.encode()).hexdigest()


def generate_one_time_token() -> Tuple[str, str]:
    """Return a random token and the sha256 digest that gets stored."""
    raw = secrets.token_hex(32)
    return raw, hash_token(raw)


def reset_token_expiry() -> datetime:
    return now_utc() + timedelta(minutes=PASSWORD_RESET_TTL_MINUTES)


def password_changed_after(user: dict, issued_at: int) -> bool:
    changed_at = user.get("passwordChangedAt")
    if not changed_at:
        return False
    return issued_at < int(as_utc(changed_at).timestamp())


def authenticate_token(database, token: Optional[str]) -> dict:
    if not token:
        raise Unauthenticated("You are not logged in. Please log in to access this resource")
    payload = decode_access_token(token)
    try:
        user_id = to_object_id(payload["sub"])
    except ValidationError:
        raise InvalidToken("Invalid token. Please log in again")
    user = database["user"].find_one({"_id": user_id})
    if not user:
        raise Unauthenticated("The user belonging to this token no longer exists")
    if password_changed_after(user, payload.get("iat", 0)):
        logger.info("stale_token_rejected", user_id=str(user_id))
        raise Unauthenticated("Password was changed recently. Please log in again")
    return user


def get_current_user(request: Request, token: Optional[str] = Depends(oauth2_scheme), database=Depends(get_db)) -> dict:
    return authenticate_token(database, token or request.cookies.get(ACCESS_COOKIE))


def authorize(principal: dict, roles: Iterable[UserRole]) -> dict:
    allowed = {UserRole(r).value for r in roles}
    role = principal.get("role")
    if role not in allowed:
        raise Forbidden(f"Role {role} is not allowed to access this resource")
    return principal


def require_roles(*roles: UserRole):
    def guard(current: dict = Depends(get_current_user)) -> dict:
        return authorize(current, roles)
    return guard


def is_admin(principal: dict) -> bool:
    return principal.get("role") == UserRole.admin.value


def get_optional_user(request: Request, token: Optional[str] = Depends(oauth2_scheme), database=Depends(get_db)) -> Optional[dict]:
    raw = token or request.cookies.get(ACCESS_COOKIE)
    if not raw:
        return None
    return authenticate_token(database, raw)
