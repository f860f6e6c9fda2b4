"""Authentication endpoints: agent token login, web login/register, logout.

Error bodies for the login endpoints use the ``{"error": ...}`` shape:
bad credentials -> 422, refused user -> 403.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from agentdesk.auth.schemas import AgentLoginRequest, LoginRequest, RegisterRequest
from agentdesk.auth.service import AuthService
from agentdesk.dependencies import bearer_scheme, get_db_session
from agentdesk.exceptions import AccessDeniedError, AuthenticationError, ValidationError

auth_router = APIRouter(tags=["auth"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@auth_router.post("/api/agent/login")
def agent_login_endpoint(
    request: AgentLoginRequest,
    db: Session = Depends(get_db_session),
):
    """Log an agent in and return the user with a fresh access token."""
    try:
        user, token = AuthService.agent_login(db, request.username, request.password)
    except AuthenticationError as e:
        return _error(422, e.message)
    except AccessDeniedError as e:
        return _error(403, e.message)

    return {**user.to_dict(), "token": token}


@auth_router.post("/api/auth/login")
def login_endpoint(
    request: LoginRequest,
    db: Session = Depends(get_db_session),
):
    """Web login by email and password."""
    try:
        user, token = AuthService.login(
            db, request.email, request.password, remember=request.remember
        )
    except AuthenticationError as e:
        return _error(422, e.message)
    except AccessDeniedError as e:
        return _error(403, e.message)

    return {**user.to_dict(), "token": token}


@auth_router.post("/api/auth/register", status_code=201)
def register_endpoint(
    request: RegisterRequest,
    db: Session = Depends(get_db_session),
):
    """Create an account and return it with an access token."""
    try:
        user, token = AuthService.register(
            db,
            name=request.name,
            email=request.email,
            password=request.password,
            password_confirmation=request.password_confirmation,
        )
    except ValidationError as e:
        return _error(422, e.message)

    return {**user.to_dict(), "token": token}


@auth_router.post("/api/auth/logout")
def logout_endpoint(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db_session),
) -> dict:
    """Revoke the access token used for this request."""
    if credentials is None or not AuthService.revoke_token(db, credentials.credentials):
        raise HTTPException(status_code=401, detail="Invalid or expired access token")
    return {"logged_out": True}
