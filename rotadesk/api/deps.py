from typing import Generator
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from rotadesk.db.database import SessionLocal
from rotadesk.core.security import Role, TokenData, decode_access_token

security = HTTPBearer()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> TokenData:
    """Identity and role come from the token; users are managed elsewhere."""
    token_data = decode_access_token(credentials.credentials)
    if token_data is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return token_data


def require_manager_or_admin(
    actor: TokenData = Depends(get_current_actor),
) -> TokenData:
    """Require user to have MANAGER or ADMIN role"""
    if actor.role not in (Role.ADMIN, Role.MANAGER):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Manager or admin access required")
    return actor


def is_admin(actor: TokenData) -> bool:
    return actor.role == Role.ADMIN


def check_venue_access(actor: TokenData, venue_id: int) -> bool:
    """Admins without a venue claim reach every venue; everyone else only their own."""
    if is_admin(actor) and actor.venue_id is None:
        return True
    return actor.venue_id == venue_id
