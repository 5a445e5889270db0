# security.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY
from dependencies import get_user_store
from errors import Forbidden, Unauthorized
from models.users import Role, User
from services.users import UserStore

security = HTTPBearer(auto_error=False)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a new access token"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def create_user_token(user: User) -> str:
    return create_access_token({"sub": user.id, "role": user.role.value})

def decode_token(token: str) -> dict:
    """Decode and verify a token"""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise Unauthorized("Token has expired")
    except JWTError:
        raise Unauthorized("Invalid token")

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    users: UserStore = Depends(get_user_store)
) -> User:
    """Resolve the bearer token to a stored, unblocked user."""
    if credentials is None:
        raise Unauthorized("Not authenticated")

    payload = decode_token(credentials.credentials)
    user_id = payload.get("sub")
    if not user_id:
        raise Unauthorized("Invalid token: missing user ID")

    user = await users.find_by_id(user_id)
    if not user:
        raise Unauthorized("User not found")

    # Blocked accounts lose access even with an unexpired token
    if user.is_blocked:
        raise Forbidden("Your account has been blocked")

    return user

def require_role(*roles: Role):
    """Dependency that admits only callers holding one of ``roles``."""
    allowed = set(roles)
    label = " or ".join(role.value for role in roles)

    async def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise Forbidden(f"Not authorized as {label}")
        return user

    return checker

get_current_farmer = require_role(Role.FARMER)
get_current_buyer = require_role(Role.BUYER)
get_current_admin = require_role(Role.ADMIN)
