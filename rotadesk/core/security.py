from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional
from jose import JWTError, jwt
from pydantic import BaseModel
from rotadesk.core.config import settings

ALGORITHM = "HS256"


class Role(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class TokenData(BaseModel):
    user_id: int
    role: Role
    venue_id: Optional[int] = None  # None = every venue (admins)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])
    if isinstance(to_encode.get("role"), Role):
        to_encode["role"] = to_encode["role"].value
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[TokenData]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        user_id = payload.get("sub")
        role = payload.get("role")
        if user_id is None or role is None:
            return None
        return TokenData(user_id=int(user_id), role=Role(role), venue_id=payload.get("venue_id"))
    except (JWTError, ValueError):
        return None
