from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.database import get_db
from app.utils.security import decode_token
from app.models.user import User
from app.stores.context import StoreContext

INVALID_TOKEN = "Invalid or expired token"

# Missing headers are handled below so every failure gets the same 401
security = HTTPBearer(auto_error=False)


def get_stores(request: Request) -> StoreContext:
    """Store context built by the application lifespan"""
    return request.app.state.stores


# Dependency to get the current authenticated user
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_TOKEN)

    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_TOKEN)

    user_id = payload.get("user_id")
    user = db.query(User).filter(User.id == user_id).first() if isinstance(user_id, int) else None
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_TOKEN)

    return user


# Role comes from the stored user, not the token claim
async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user
