"""Shared FastAPI dependencies: database session and current user.

Tests override get_db_session (and usually get_current_user) through
app.dependency_overrides.
"""

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from agentdesk.auth.service import AuthService
from agentdesk.users.models import User

bearer_scheme = HTTPBearer(auto_error=False)


def get_db_session():
    """Yield a request-scoped session. The engine is created on first use."""
    from agentdesk.db.engine import get_db

    with get_db() as db:
        yield db


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db_session),
) -> User:
    """Resolve the bearer access token to an active user, or answer 401."""
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = AuthService.resolve_token(db, credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired access token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
