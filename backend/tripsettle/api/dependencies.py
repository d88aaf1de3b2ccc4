"""
Shared FastAPI dependencies.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from tripsettle.core.security import decode_access_token
from tripsettle.db.session import get_db
from tripsettle.models.user import User
from tripsettle.services.cache_service import SummaryCache, get_summary_cache
from tripsettle.services.settlement_service import SettlementService

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to an active user."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    
    payload = decode_access_token(credentials.credentials)
    if payload is None or payload.get("sub") is None:
        raise credentials_exception
    
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise credentials_exception
    
    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise credentials_exception
    return user


def get_settlement_service(
    db: Session = Depends(get_db),
    cache: SummaryCache = Depends(get_summary_cache)
) -> SettlementService:
    """Settlement service wired to the request's session and the summary cache."""
    return SettlementService(db, cache=cache)
