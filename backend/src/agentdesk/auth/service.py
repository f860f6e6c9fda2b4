"""Authentication: credential checks, registration and access-token lifecycle.

AuthService: authenticate, agent_login, login, register, issue_token,
    resolve_token, revoke_token.

All methods take a Session as first argument (dependency injection).
Credential failures raise AuthenticationError; authenticated users that may
not use an entry point raise AccessDeniedError.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from agentdesk.auth.security import (
    generate_token_secret,
    hash_password,
    hash_token,
    split_token,
    token_matches,
    verify_password,
)
from agentdesk.config import get_settings
from agentdesk.exceptions import AccessDeniedError, AuthenticationError, ValidationError
from agentdesk.users.models import ROLE_USER, AccessToken, User

logger = logging.getLogger(__name__)


def _username_from_email(db: Session, email: str) -> str:
    """Derive a unique username from the local part of an email address."""
    base = re.sub(r"[^a-z0-9_.-]", "", email.split("@", 1)[0].lower()) or "user"
    candidate = base
    suffix = 1
    while db.query(User.id).filter(User.username == candidate).first() is not None:
        suffix += 1
        candidate = f"{base}{suffix}"
    return candidate


class AuthService:
    """Login, registration and personal access tokens."""

    @staticmethod
    def authenticate(
        db: Session,
        password: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        """Return the user matching the credentials. Soft-deleted users never match."""
        query = db.query(User).filter(User.deleted_at.is_(None))
        if username is not None:
            query = query.filter(User.username == username)
        elif email is not None:
            query = query.filter(func.lower(User.email) == email.strip().lower())
        else:
            raise AuthenticationError()

        user = query.first()
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", username or email)
            raise AuthenticationError()
        return user

    @staticmethod
    def issue_token(db: Session, user: User, name: Optional[str] = None) -> str:
        """Persist a new access token for ``user`` and return its plain form."""
        settings = get_settings()
        secret = generate_token_secret()
        token = AccessToken(
            user_id=user.id,
            name=name or f"{user.username}{settings.token_name_suffix}",
            token_hash=hash_token(secret),
        )
        db.add(token)
        db.commit()
        db.refresh(token)
        return f"{token.id}|{secret}"

    @staticmethod
    def agent_login(db: Session, username: str, password: str) -> tuple[User, str]:
        """Token login for agents. Inactive users and non-agents are refused."""
        user = AuthService.authenticate(db, password, username=username)

        if not user.is_active or not user.is_agent():
            logger.warning("Agent login refused for %s (role=%s, active=%s)",
                           user.username, user.role, user.is_active)
            raise AccessDeniedError(detail=f"user_id={user.id}")

        return user, AuthService.issue_token(db, user)

    @staticmethod
    def login(
        db: Session, email: str, password: str, remember: bool = False
    ) -> tuple[User, str]:
        """Web login by email for any active user."""
        user = AuthService.authenticate(db, password, email=email)
        if not user.is_active:
            raise AccessDeniedError(detail=f"user_id={user.id}")

        name = f"{user.username}-remember-token" if remember else None
        return user, AuthService.issue_token(db, user, name=name)

    @staticmethod
    def register(
        db: Session,
        name: str,
        email: str,
        password: str,
        password_confirmation: str,
    ) -> tuple[User, str]:
        """Create a regular user account and log it in."""
        if password != password_confirmation:
            raise ValidationError(
                message="The password confirmation does not match.",
                detail="password != password_confirmation",
            )

        email = email.strip().lower()
        if db.query(User.id).filter(func.lower(User.email) == email).first() is not None:
            raise ValidationError(
                message="The email has already been taken.",
                detail=f"email={email}",
                suggestion="Log in instead, or register with a different email",
            )

        user = User(
            name=name.strip(),
            email=email,
            username=_username_from_email(db, email),
            password_hash=hash_password(password),
            role=ROLE_USER,
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Registered user %s", user.username)

        return user, AuthService.issue_token(db, user)

    @staticmethod
    def _find_token(db: Session, token: str) -> Optional[AccessToken]:
        parts = split_token(token)
        if parts is None:
            return None
        token_id, secret = parts
        record = db.query(AccessToken).filter(AccessToken.id == token_id).first()
        if record is None or not token_matches(secret, record.token_hash):
            return None
        return record

    @staticmethod
    def resolve_token(db: Session, token: str) -> Optional[User]:
        """The active user owning ``token``, or None. Touches last_used_at."""
        record = AuthService._find_token(db, token)
        if record is None:
            return None
        user = record.user
        if user is None or user.is_deleted or not user.is_active:
            return None
        record.last_used_at = datetime.now(timezone.utc)
        db.commit()
        return user

    @staticmethod
    def revoke_token(db: Session, token: str) -> bool:
        record = AuthService._find_token(db, token)
        if record is None:
            return False
        db.delete(record)
        db.commit()
        return True
