"""Pydantic schemas for the login and registration endpoints."""

from pydantic import BaseModel, Field


class AgentLoginRequest(BaseModel):
    """Agent token login."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    """Web login form."""

    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=1)
    remember: bool = False


class RegisterRequest(BaseModel):
    """Web registration form."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=8)
    password_confirmation: str
